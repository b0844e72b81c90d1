"""Flatten raw upstream cards into one snapshot row per price variant."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal, InvalidOperation
from typing import Any

from riftwatch.core.data.models import DEFAULT_PRINTING, RawCard, SnapshotRow
from riftwatch.core.data.schema import fits_amount
from riftwatch.core.logging import get_logger

logger = get_logger(__name__)

_DELTA_24H_KEYS = ("priceChange24h", "priceChange24hr")
_DELTA_7D_KEYS = ("priceChange7d",)


def to_decimal(value: Any) -> Decimal | None:
    """Coerce an upstream numeric field to Decimal, or None when it is unusable.

    Unusable means not a finite number, or too large for an amount column.
    Zero stays zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite() or not fits_amount(result):
        return None
    return result


def _first_present(variant: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if variant.get(key) is not None:
            return variant[key]
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_card(card: RawCard) -> Iterator[SnapshotRow]:
    """Yield a row for every variant of ``card``.

    Rows whose price is unknown are still produced; the store drops them.
    """
    if not isinstance(card.variants, list):
        if card.variants is not None:
            logger.debug("Card {} has non-list variants; no rows emitted", card.id)
        return
    for variant in card.variants:
        if not isinstance(variant, dict):
            logger.debug("Skipping malformed variant of card {}", card.id)
            continue
        yield SnapshotRow(
            product_id=card.id,
            name=_text(card.name),
            set_name=_text(card.set_name),
            rarity=_text(card.rarity),
            printing=_text(variant.get("printing")) or DEFAULT_PRINTING,
            condition=_text(variant.get("condition")),
            market_price=to_decimal(variant.get("price")),
            price_change_24h=to_decimal(_first_present(variant, _DELTA_24H_KEYS)),
            price_change_7d=to_decimal(_first_present(variant, _DELTA_7D_KEYS)),
        )


def normalize(cards: Iterable[RawCard]) -> Iterator[SnapshotRow]:
    """Lazily expand every card into its snapshot rows."""
    for card in cards:
        yield from normalize_card(card)


__all__ = ["normalize", "normalize_card", "to_decimal"]
