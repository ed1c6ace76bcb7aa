"""
Fee and slippage accounting.

Computes the quote-currency cost of a buy-transfer-sell round trip and
resolves incomplete exchange fee profiles against configured defaults.
A missing fee is always replaced by a default, never by zero, and the
substitution is recorded so callers can see which numbers are estimates.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from crossarb.config.constants import (
    DEFAULT_MAKER_FEE,
    DEFAULT_TAKER_FEE,
    DEFAULT_WITHDRAWAL_FEE_QUOTE,
)
from crossarb.core.types import ExchangeProfile
from crossarb.utils.math import safe_divide


logger = logging.getLogger(__name__)


def compute_costs(
    trade_amount_quote: Decimal,
    buy_taker_fee: Decimal,
    sell_taker_fee: Decimal,
    withdrawal_fee_quote: Decimal,
    buy_vwap: Decimal,
    sell_vwap: Decimal,
) -> Decimal:
    """
    Total quote-currency cost of one round trip.

    Buy fee is charged on the notional spent, sell fee on the proceeds of
    the base amount bought, and the withdrawal fee is a flat amount.

    Args:
        trade_amount_quote: Notional spent on the buy leg.
        buy_taker_fee: Taker rate on the buy exchange.
        sell_taker_fee: Taker rate on the sell exchange.
        withdrawal_fee_quote: Transfer cost in quote units.
        buy_vwap: Average buy price.
        sell_vwap: Average sell price.

    Returns:
        Sum of buy fee, sell fee and withdrawal fee.
    """
    buy_fee = trade_amount_quote * buy_taker_fee
    base_amount = safe_divide(trade_amount_quote, buy_vwap)
    sell_fee = sell_vwap * base_amount * sell_taker_fee
    return buy_fee + sell_fee + withdrawal_fee_quote


@dataclass(slots=True, frozen=True)
class ResolvedFees:
    """Complete fee schedule for one exchange."""

    exchange: str
    maker_fee: Decimal
    taker_fee: Decimal
    withdrawal_fee_quote: Decimal
    defaults_applied: frozenset[str] = frozenset()

    @property
    def is_estimated(self) -> bool:
        """Check if any value came from defaults."""
        return bool(self.defaults_applied)


class FeeModel:
    """Resolves exchange profiles into complete fee schedules."""

    __slots__ = ("_default_maker", "_default_taker", "_default_withdrawal")

    def __init__(
        self,
        default_maker_fee: Decimal = DEFAULT_MAKER_FEE,
        default_taker_fee: Decimal = DEFAULT_TAKER_FEE,
        default_withdrawal_fee_quote: Decimal = DEFAULT_WITHDRAWAL_FEE_QUOTE,
    ) -> None:
        self._default_maker = default_maker_fee
        self._default_taker = default_taker_fee
        self._default_withdrawal = default_withdrawal_fee_quote

    def resolve(self, exchange: str, profile: ExchangeProfile | None) -> ResolvedFees:
        """
        Fill missing profile fields with defaults.

        Args:
            exchange: Exchange id.
            profile: Known fee profile, possibly incomplete or absent.

        Returns:
            ResolvedFees listing which fields were defaulted.
        """
        provided = {
            "maker_fee": profile.maker_fee if profile else None,
            "taker_fee": profile.taker_fee if profile else None,
            "withdrawal_fee": profile.withdrawal_fee_usdt if profile else None,
        }
        defaults = {
            "maker_fee": self._default_maker,
            "taker_fee": self._default_taker,
            "withdrawal_fee": self._default_withdrawal,
        }

        resolved: dict[str, Decimal] = {}
        applied: set[str] = set()
        for name, value in provided.items():
            if value is None:
                resolved[name] = defaults[name]
                applied.add(name)
                logger.debug(f"{exchange}: no {name} in profile, using default {defaults[name]}")
            else:
                resolved[name] = value

        return ResolvedFees(
            exchange=exchange,
            maker_fee=resolved["maker_fee"],
            taker_fee=resolved["taker_fee"],
            withdrawal_fee_quote=resolved["withdrawal_fee"],
            defaults_applied=frozenset(applied),
        )
