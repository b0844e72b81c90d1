"""Text rendering for prices and deltas shared by every presentation surface."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

NOT_AVAILABLE = "N/A"
NO_SNAPSHOT = "No snapshot data yet. Run the snapshot job first."
NO_TIER_DATA = "No data for this tier."

_CENTS = Decimal("0.01")


def _two_places(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_price(price: Decimal | None) -> str:
    """``$12.34``, or ``N/A`` when the price is unknown."""
    if price is None:
        return NOT_AVAILABLE
    return f"${_two_places(price)}"


def format_delta(delta: Decimal | None) -> str:
    """Signed delta (``+1.20`` / ``-0.35``), or ``N/A`` when unknown."""
    if delta is None:
        return NOT_AVAILABLE
    rounded = _two_places(delta)
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:+}"


def format_search_delta(delta: Decimal | None) -> str:
    """Search output shows an unknown delta as a flat ``+0.00``."""
    return format_delta(delta if delta is not None else Decimal(0))


__all__ = [
    "NOT_AVAILABLE",
    "NO_SNAPSHOT",
    "NO_TIER_DATA",
    "format_delta",
    "format_price",
    "format_search_delta",
]
