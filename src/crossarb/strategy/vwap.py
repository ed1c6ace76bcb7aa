"""
Volume-weighted average price estimation.

Walks one side of an order book best-first and prices a target notional
against the visible depth. When the book is too thin the remainder is
priced at the worst level seen, so the estimate never looks better than
the book supports.
"""

from collections.abc import Iterable
from decimal import Decimal

from crossarb.core.types import OrderBookLevel
from crossarb.utils.math import ZERO, is_usable


def estimate_vwap(levels: Iterable[OrderBookLevel], target_notional: Decimal) -> Decimal:
    """
    Estimate the average fill price for a quote-denominated order.

    Args:
        levels: Book side ordered best-first (asks ascending, bids descending).
        target_notional: Quote amount to fill.

    Returns:
        Average fill price, or 0 when no usable level exists.

    Example:
        >>> levels = [OrderBookLevel(Decimal("100"), Decimal("1")),
        ...           OrderBookLevel(Decimal("101"), Decimal("2"))]
        >>> estimate_vwap(levels, Decimal("100"))
        Decimal('100')
    """
    # Non-finite and non-positive entries are feed anomalies
    usable = [level for level in levels if is_usable(level.price) and is_usable(level.size)]
    if not usable:
        return ZERO

    if not is_usable(target_notional):
        return usable[0].price

    remaining = target_notional
    volume = ZERO
    cost = ZERO
    last_price = usable[0].price

    for level in usable:
        take = min(level.notional, remaining)
        volume += take / level.price
        cost += take
        remaining -= take
        last_price = level.price
        if remaining <= ZERO:
            break

    if remaining > ZERO:
        volume += remaining / last_price
        cost += remaining

    return cost / volume
