"""Snapshot store: card metadata plus the single latest price snapshot.

``write_snapshot`` replaces the whole snapshot in one DuckDB transaction so
readers see either the previous snapshot or the new one, never a mix.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from time import perf_counter

import duckdb
from duckdb import DuckDBPyConnection

from riftwatch.core.data.models import SnapshotRow
from riftwatch.core.data.schema import ensure_snapshot_tables, fits_amount
from riftwatch.core.exceptions import StoreTransactionError
from riftwatch.core.logging import get_logger

logger = get_logger(__name__)

_UPSERT_CARDS = (
    "INSERT INTO cards (product_id, name, set_name, rarity, last_seen) VALUES {values} "
    "ON CONFLICT (product_id) DO UPDATE SET "
    "name = excluded.name, set_name = excluded.set_name, "
    "rarity = excluded.rarity, last_seen = excluded.last_seen"
)

_INSERT_SNAPSHOT_ROWS = (
    "INSERT INTO price_snapshots "
    "(seq, product_id, printing, snapshot_date, market_price, price_change_24h, price_change_7d) "
    "VALUES {values}"
)

# Rows bound per multi-row VALUES statement.
_BATCH_SIZE = 500


@dataclass(slots=True, frozen=True)
class SnapshotWriteResult:
    """Outcome of a committed snapshot write."""

    snapshot_date: date
    cards_upserted: int
    rows_written: int
    rows_skipped: int
    duplicates_dropped: int
    duration_ms: float


@dataclass(slots=True, frozen=True)
class SnapshotInfo:
    """As-of date and size of the visible snapshot."""

    snapshot_date: date | None
    row_count: int


def today_utc() -> date:
    return datetime.now(UTC).date()


def _amount_or_none(value: Decimal | None) -> Decimal | None:
    return value if value is not None and fits_amount(value) else None


def _insert_batched(cursor: DuckDBPyConnection, statement: str, rows: list[tuple[object, ...]]) -> None:
    placeholder = "(" + ", ".join("?" * len(rows[0])) + ")"
    for start in range(0, len(rows), _BATCH_SIZE):
        batch = rows[start : start + _BATCH_SIZE]
        params = [value for row in batch for value in row]
        cursor.execute(statement.format(values=", ".join([placeholder] * len(batch))), params)


class SnapshotStore:
    """DuckDB-backed store for card metadata and the latest price snapshot."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn
        ensure_snapshot_tables(conn)

    @contextmanager
    def _transaction(self) -> Iterator[DuckDBPyConnection]:
        cursor = self._conn.cursor()
        try:
            cursor.execute("BEGIN TRANSACTION")
            try:
                yield cursor
                cursor.execute("COMMIT")
            except Exception:
                try:
                    cursor.execute("ROLLBACK")
                except duckdb.Error:
                    logger.debug("Transaction already closed by a failed commit")
                raise
        finally:
            cursor.close()

    @contextmanager
    def read_transaction(self) -> Iterator[DuckDBPyConnection]:
        """Yield a cursor whose reads all observe the same committed snapshot."""

        with self._transaction() as cursor:
            yield cursor

    def write_snapshot(self, rows: Iterable[SnapshotRow], snapshot_date: date | None = None) -> SnapshotWriteResult:
        """Atomically replace the snapshot with ``rows``.

        Every distinct product is upserted into ``cards``; rows without a
        storable price are not stored, and repeated (product, printing) keys keep the first
        priced row.

        Raises:
            StoreTransactionError: the write failed and was rolled back.
        """
        start = perf_counter()
        snapshot_date = snapshot_date or today_utc()

        cards: dict[str, tuple[object, ...]] = {}
        priced: list[tuple[object, ...]] = []
        seen_keys: set[tuple[str, str]] = set()
        skipped = 0
        duplicates = 0

        for row in rows:
            cards[row.product_id] = (row.product_id, row.name, row.set_name, row.rarity, snapshot_date)
            if row.market_price is None or not fits_amount(row.market_price):
                skipped += 1
                continue
            key = (row.product_id, row.printing)
            if key in seen_keys:
                duplicates += 1
                continue
            seen_keys.add(key)
            priced.append(
                (
                    len(priced),
                    row.product_id,
                    row.printing,
                    snapshot_date,
                    row.market_price,
                    _amount_or_none(row.price_change_24h),
                    _amount_or_none(row.price_change_7d),
                )
            )

        try:
            with self._transaction() as cursor:
                cursor.execute("DELETE FROM price_snapshots")
                self._upsert_cards(cursor, list(cards.values()))
                self._insert_snapshot_rows(cursor, priced)
        except duckdb.Error as exc:
            logger.bind(error_code="STORE_TRANSACTION_ERROR").error(
                "Snapshot write for {} rolled back: {}", snapshot_date, exc
            )
            raise StoreTransactionError(
                f"Snapshot write failed and was rolled back: {exc}",
                snapshot_date=snapshot_date.isoformat(),
            ) from exc

        result = SnapshotWriteResult(
            snapshot_date=snapshot_date,
            cards_upserted=len(cards),
            rows_written=len(priced),
            rows_skipped=skipped,
            duplicates_dropped=duplicates,
            duration_ms=(perf_counter() - start) * 1000,
        )
        logger.info(
            "Snapshot {} stored: {} prices, {} cards, {} without price, {} duplicates",
            snapshot_date,
            result.rows_written,
            result.cards_upserted,
            result.rows_skipped,
            result.duplicates_dropped,
        )
        return result

    def _upsert_cards(self, cursor: DuckDBPyConnection, cards: list[tuple[object, ...]]) -> None:
        if cards:
            _insert_batched(cursor, _UPSERT_CARDS, cards)

    def _insert_snapshot_rows(self, cursor: DuckDBPyConnection, rows: list[tuple[object, ...]]) -> None:
        if rows:
            _insert_batched(cursor, _INSERT_SNAPSHOT_ROWS, rows)

    def snapshot_info(self) -> SnapshotInfo:
        with self.read_transaction() as cursor:
            latest, count = cursor.execute(
                "SELECT MAX(snapshot_date), COUNT(*) FROM price_snapshots"
            ).fetchone()
        return SnapshotInfo(snapshot_date=latest, row_count=count)


__all__ = ["SnapshotInfo", "SnapshotStore", "SnapshotWriteResult", "today_utc"]
