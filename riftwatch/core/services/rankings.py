"""Ranking queries over the latest price snapshot.

All queries read inside a single transaction so the as-of date and the rows
come from the same committed snapshot. An empty store is not an error: every
query returns a result whose ``snapshot_date`` is None.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from duckdb import DuckDBPyConnection

from riftwatch.core.data.models import CardPrice, Tier, Window
from riftwatch.core.data.storage import SnapshotStore
from riftwatch.core.exceptions import QueryValidationError
from riftwatch.core.logging import get_logger

logger = get_logger(__name__)

_SELECT_ROWS = """
    SELECT s.product_id, c.name, c.set_name, c.rarity, s.printing,
           s.market_price, s.price_change_24h, s.price_change_7d
    FROM price_snapshots s
    LEFT JOIN cards c ON c.product_id = s.product_id
    WHERE s.snapshot_date = ?
"""


@dataclass(slots=True, frozen=True)
class TieredMovers:
    """One movers bucket split by price magnitude."""

    high: tuple[CardPrice, ...] = ()
    mid: tuple[CardPrice, ...] = ()
    low: tuple[CardPrice, ...] = ()

    def bucket(self, tier: Tier) -> tuple[CardPrice, ...]:
        return {Tier.HIGH: self.high, Tier.MID: self.mid, Tier.LOW: self.low}[tier]


@dataclass(slots=True, frozen=True)
class MoversResult:
    snapshot_date: date | None
    window: Window
    increases: tuple[CardPrice, ...] = ()
    decreases: tuple[CardPrice, ...] = ()
    tiered_increases: TieredMovers | None = None
    tiered_decreases: TieredMovers | None = None

    @property
    def has_data(self) -> bool:
        return self.snapshot_date is not None


@dataclass(slots=True, frozen=True)
class PricedResult:
    snapshot_date: date | None
    rows: tuple[CardPrice, ...] = ()

    @property
    def has_data(self) -> bool:
        return self.snapshot_date is not None


@dataclass(slots=True, frozen=True)
class SearchResult:
    snapshot_date: date | None
    query: str
    rows: tuple[CardPrice, ...] = field(default_factory=tuple)

    @property
    def has_data(self) -> bool:
        return self.snapshot_date is not None


def parse_window(window: Window | str) -> Window:
    if isinstance(window, Window):
        return window
    try:
        return Window(str(window).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(w.value for w in Window)
        raise QueryValidationError(
            f"Unsupported window '{window}'. Allowed values: {allowed}", field="window"
        ) from exc


def _validate_limit(limit: int) -> None:
    if limit < 1:
        raise QueryValidationError("limit must be at least 1", field="limit", details={"limit": limit})


def _to_card_price(row: Sequence[object]) -> CardPrice:
    product_id, name, set_name, rarity, printing, price, delta_24h, delta_7d = row
    return CardPrice(
        product_id=product_id,
        name=name,
        set_name=set_name,
        rarity=rarity,
        printing=printing,
        market_price=price,
        price_change_24h=delta_24h,
        price_change_7d=delta_7d,
    )


def split_tiers(rows: Sequence[CardPrice], limit: int) -> TieredMovers:
    """Partition ranked rows into price tiers, keeping rank order and truncating each tier."""

    buckets: dict[Tier, list[CardPrice]] = {tier: [] for tier in Tier}
    for row in rows:
        bucket = buckets[row.tier]
        if len(bucket) < limit:
            bucket.append(row)
    return TieredMovers(
        high=tuple(buckets[Tier.HIGH]),
        mid=tuple(buckets[Tier.MID]),
        low=tuple(buckets[Tier.LOW]),
    )


class RankingService:
    """Answers movers, highest-priced and name search queries."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    @staticmethod
    def _latest_date(cursor: DuckDBPyConnection) -> date | None:
        return cursor.execute("SELECT MAX(snapshot_date) FROM price_snapshots").fetchone()[0]

    def get_movers(
        self,
        limit: int = 5,
        window: Window | str = Window.DAY,
        rarity: str | None = None,
        tiered: bool = False,
    ) -> MoversResult:
        """Rank the biggest increases and decreases over ``window``.

        Equal deltas keep storage order. With ``tiered`` each direction is also
        split into High/Mid/Low price tiers, each truncated to ``limit``.
        """
        _validate_limit(limit)
        window = parse_window(window)

        with self._store.read_transaction() as cursor:
            latest = self._latest_date(cursor)
            if latest is None:
                return MoversResult(snapshot_date=None, window=window)

            sql = _SELECT_ROWS + f" AND s.{window.column} IS NOT NULL"
            params: list[object] = [latest]
            if rarity:
                sql += " AND lower(c.rarity) = lower(?)"
                params.append(rarity.strip())
            sql += " ORDER BY s.seq"
            rows = [_to_card_price(row) for row in cursor.execute(sql, params).fetchall()]

        zero = Decimal(0)
        increases = sorted(
            (row for row in rows if row.delta(window) > zero),
            key=lambda row: row.delta(window),
            reverse=True,
        )
        decreases = sorted(
            (row for row in rows if row.delta(window) < zero),
            key=lambda row: row.delta(window),
        )

        result = MoversResult(
            snapshot_date=latest,
            window=window,
            increases=tuple(increases[:limit]),
            decreases=tuple(decreases[:limit]),
            tiered_increases=split_tiers(increases, limit) if tiered else None,
            tiered_decreases=split_tiers(decreases, limit) if tiered else None,
        )
        logger.debug(
            "Movers {} as of {}: {} up, {} down",
            window.value,
            latest,
            len(result.increases),
            len(result.decreases),
        )
        return result

    def get_highest_priced(self, limit: int = 5, rarity: str | None = None) -> PricedResult:
        """Return the most expensive printings, highest first."""
        _validate_limit(limit)

        with self._store.read_transaction() as cursor:
            latest = self._latest_date(cursor)
            if latest is None:
                return PricedResult(snapshot_date=None)

            sql = _SELECT_ROWS + " AND s.market_price IS NOT NULL"
            params: list[object] = [latest]
            if rarity:
                sql += " AND lower(c.rarity) = lower(?)"
                params.append(rarity.strip())
            sql += " ORDER BY s.market_price DESC, s.seq LIMIT ?"
            params.append(limit)
            rows = cursor.execute(sql, params).fetchall()

        return PricedResult(snapshot_date=latest, rows=tuple(_to_card_price(row) for row in rows))

    def search_card_prices(self, name_query: str, limit: int = 5) -> SearchResult:
        """Case-insensitive substring search on card name, alphabetical."""
        _validate_limit(limit)
        needle = (name_query or "").strip()
        if not needle:
            raise QueryValidationError("Search query must not be empty", field="name_query")

        with self._store.read_transaction() as cursor:
            latest = self._latest_date(cursor)
            if latest is None:
                return SearchResult(snapshot_date=None, query=needle)

            sql = (
                _SELECT_ROWS
                + " AND strpos(lower(c.name), lower(?)) > 0"
                + " ORDER BY lower(c.name), c.name, s.seq LIMIT ?"
            )
            rows = cursor.execute(sql, [latest, needle, limit]).fetchall()

        return SearchResult(
            snapshot_date=latest,
            query=needle,
            rows=tuple(_to_card_price(row) for row in rows),
        )


__all__ = [
    "MoversResult",
    "PricedResult",
    "RankingService",
    "SearchResult",
    "TieredMovers",
    "parse_window",
    "split_tiers",
]
