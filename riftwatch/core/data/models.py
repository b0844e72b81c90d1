"""Records flowing through the ingestion pipeline and out of ranking queries."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

DEFAULT_PRINTING = "Non-Foil"

HIGH_TIER_FLOOR = Decimal("20")
MID_TIER_FLOOR = Decimal("5")


class Window(str, Enum):
    """Delta window reported by the upstream source."""

    DAY = "24h"
    WEEK = "7d"

    @property
    def column(self) -> str:
        return "price_change_24h" if self is Window.DAY else "price_change_7d"


class Tier(str, Enum):
    """Price magnitude bucket used to group movers."""

    HIGH = "high"
    MID = "mid"
    LOW = "low"

    @classmethod
    def for_price(cls, price: Decimal) -> Tier:
        magnitude = abs(price)
        if magnitude >= HIGH_TIER_FLOOR:
            return cls.HIGH
        if magnitude >= MID_TIER_FLOOR:
            return cls.MID
        return cls.LOW


@dataclass(slots=True)
class RawCard:
    """A card record as returned by the upstream source.

    ``variants`` is kept as the raw payload; the normalizer decides whether it
    is usable.
    """

    id: str
    name: str | None
    set_name: str | None
    rarity: str | None
    variants: Any

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RawCard:
        return cls(
            id=str(payload["id"]),
            name=payload.get("name"),
            set_name=payload.get("set_name") or payload.get("set"),
            rarity=payload.get("rarity"),
            variants=payload.get("variants"),
        )


@dataclass(slots=True, frozen=True)
class SnapshotRow:
    """One flattened price fact per card printing, plus the card metadata to upsert."""

    product_id: str
    name: str | None
    set_name: str | None
    rarity: str | None
    printing: str
    condition: str | None
    market_price: Decimal | None
    price_change_24h: Decimal | None
    price_change_7d: Decimal | None


@dataclass(slots=True, frozen=True)
class CardPrice:
    """A stored snapshot row joined with its card metadata."""

    product_id: str
    name: str | None
    set_name: str | None
    rarity: str | None
    printing: str
    market_price: Decimal
    price_change_24h: Decimal | None
    price_change_7d: Decimal | None

    @property
    def display_name(self) -> str:
        return self.name or f"Product #{self.product_id}"

    @property
    def tier(self) -> Tier:
        return Tier.for_price(self.market_price)

    def delta(self, window: Window) -> Decimal | None:
        return self.price_change_24h if window is Window.DAY else self.price_change_7d


__all__ = [
    "CardPrice",
    "DEFAULT_PRINTING",
    "RawCard",
    "SnapshotRow",
    "Tier",
    "Window",
]
