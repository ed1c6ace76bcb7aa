"""
Type definitions for the arbitrage monitor.

This module contains the dataclasses, enums and Protocol definitions used
throughout the application. Market data and results are frozen so a
snapshot taken in one cycle can be shared freely between tasks.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from crossarb.config.constants import (
    AMOUNT_PRECISION,
    MAX_TRADE_AMOUNT_QUOTE,
    PERCENTAGE_PRECISION,
    PRICE_PRECISION,
)
from crossarb.core.errors import FailureKind, IntentValidationError, VenueError
from crossarb.utils.math import HUNDRED, ZERO, format_fixed, is_usable, safe_divide, to_decimal
from crossarb.utils.time import get_timestamp_ms


# =============================================================================
# Enums
# =============================================================================


class WalletStatus(str, Enum):
    """Deposit/withdrawal state of an asset on a venue."""

    OK = "ok"
    DISABLED = "disabled"
    MAINTENANCE = "maintenance"


class RecommendationTier(str, Enum):
    """Risk tier derived from the risk score."""

    SAFE = "safe"
    CAUTION = "caution"
    HIGH_RISK = "high_risk"

    @property
    def recommendation(self) -> str:
        """Human-readable advice for the tier."""
        return _RECOMMENDATIONS[self]


_RECOMMENDATIONS: dict[RecommendationTier, str] = {
    RecommendationTier.SAFE: "Low risk. Spread and wallets look stable.",
    RecommendationTier.CAUTION: "Moderate risk. Verify depth and transfer times before acting.",
    RecommendationTier.HIGH_RISK: "High risk. Likely stale data or blocked transfers.",
}


class OpportunityStatus(str, Enum):
    """Whether an opportunity clears the user's profit threshold."""

    AVAILABLE = "available"
    ANALYZING = "analyzing"


class TradeStatus(str, Enum):
    """Outcome of a recorded trade."""

    EXECUTED = "executed"
    FAILED = "failed"
    SIMULATED = "simulated"


class Severity(str, Enum):
    """Severity of a venue failure event."""

    LOW = "low"
    HIGH = "high"


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class OrderBookLevel:
    """Single price level of an order book."""

    price: Decimal
    size: Decimal

    @property
    def notional(self) -> Decimal:
        """Quote value available at this level."""
        return self.price * self.size


def _first_usable(levels: tuple[OrderBookLevel, ...]) -> OrderBookLevel | None:
    """First level with a positive finite price and size."""
    for level in levels:
        if is_usable(level.price) and is_usable(level.size):
            return level
    return None


@dataclass(slots=True, frozen=True)
class VenueHealth:
    """
    Transfer health of the base asset on one venue.

    An arbitrage leg is only executable when the asset can leave the
    buy venue and arrive on the sell venue over a shared network.
    """

    wallet_status: WalletStatus
    supported_networks: frozenset[str] = frozenset()

    @property
    def is_healthy(self) -> bool:
        """Check if transfers are open."""
        return self.wallet_status == WalletStatus.OK

    @property
    def networks_unreported(self) -> bool:
        """Transfers are open but the venue did not list its networks."""
        return self.is_healthy and not self.supported_networks

    def with_fallback_networks(self, networks: frozenset[str]) -> "VenueHealth":
        """Fill in assumed networks when none were reported."""
        if not self.networks_unreported:
            return self
        return VenueHealth(wallet_status=self.wallet_status, supported_networks=networks)

    @classmethod
    def unknown(cls) -> "VenueHealth":
        """Health used when the venue reports no currency status."""
        return cls(wallet_status=WalletStatus.MAINTENANCE)


@dataclass(slots=True, frozen=True)
class RawOrderBook:
    """Normalized order book as returned by a gateway."""

    bids: tuple[OrderBookLevel, ...]
    asks: tuple[OrderBookLevel, ...]
    timestamp_ms: int


@dataclass(slots=True, frozen=True)
class OrderBookSnapshot:
    """
    Order book of one pair on one exchange, captured in one cycle.

    Bids are sorted by descending price, asks by ascending price.
    Superseded every cycle, never mutated.
    """

    exchange: str
    pair: str
    bids: tuple[OrderBookLevel, ...]
    asks: tuple[OrderBookLevel, ...]
    captured_at_ms: int
    health: VenueHealth
    cycle_id: int = 0

    @property
    def best_bid(self) -> Decimal | None:
        """Highest usable bid price."""
        level = _first_usable(self.bids)
        return level.price if level else None

    @property
    def best_ask(self) -> Decimal | None:
        """Lowest usable ask price."""
        level = _first_usable(self.asks)
        return level.price if level else None

    @property
    def has_liquidity(self) -> bool:
        """Both sides hold at least one level with positive price and size."""
        return self.best_bid is not None and self.best_ask is not None

    @property
    def spread_pct(self) -> Decimal:
        """Top-of-book spread as a percentage of mid price."""
        bid, ask = self.best_bid, self.best_ask
        if bid is None or ask is None:
            return ZERO
        mid = (bid + ask) / 2
        return safe_divide((ask - bid) * HUNDRED, mid)

    @property
    def is_crossed(self) -> bool:
        """Best bid above best ask, a data anomaly."""
        bid, ask = self.best_bid, self.best_ask
        return bid is not None and ask is not None and bid > ask


@dataclass(slots=True, frozen=True)
class ExchangeProfile:
    """
    Fee schedule of one exchange.

    Every field is optional. Missing values are substituted with defaults
    by the fee model, never treated as zero.
    """

    name: str
    maker_fee: Decimal | None = None
    taker_fee: Decimal | None = None
    withdrawal_fee_usdt: Decimal | None = None


@dataclass(slots=True, frozen=True)
class VenueFailure:
    """Structured failure event raised while aggregating market data."""

    exchange: str
    kind: FailureKind
    message: str
    pair: str | None = None
    severity: Severity = Severity.LOW
    timestamp_ms: int = field(default_factory=get_timestamp_ms)

    @classmethod
    def from_error(cls, error: VenueError) -> "VenueFailure":
        """Build a failure event from a classified venue error."""
        severity = Severity.HIGH if error.kind == FailureKind.AUTH else Severity.LOW
        return cls(
            exchange=error.exchange,
            kind=error.kind,
            message=error.message,
            pair=error.pair,
            severity=severity,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "exchange": self.exchange,
            "pair": self.pair,
            "kind": self.kind.value,
            "message": self.message,
            "severity": self.severity.value,
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass(slots=True, frozen=True)
class SnapshotSet:
    """Result of one aggregation cycle."""

    cycle_id: int
    started_at_ms: int
    snapshots: Mapping[tuple[str, str], OrderBookSnapshot]
    failures: tuple[VenueFailure, ...] = ()
    excluded_exchanges: frozenset[str] = frozenset()

    def for_pair(self, pair: str) -> dict[str, OrderBookSnapshot]:
        """Get snapshots of one pair keyed by exchange."""
        return {
            exchange: snapshot
            for (exchange, snapshot_pair), snapshot in self.snapshots.items()
            if snapshot_pair == pair
        }

    @property
    def exchanges(self) -> frozenset[str]:
        """Exchanges that produced at least one snapshot."""
        return frozenset(exchange for exchange, _ in self.snapshots)

    @property
    def pairs(self) -> frozenset[str]:
        """Pairs with at least one snapshot."""
        return frozenset(pair for _, pair in self.snapshots)


# =============================================================================
# Request Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class TradeIntent:
    """
    User's trade parameters for one evaluation.

    Validated on construction. Numeric inputs are coerced to Decimal.

    Raises:
        IntentValidationError: If any parameter is out of range.
    """

    trade_amount_quote: Decimal
    min_profit_percentage: Decimal
    risk_percentage: Decimal
    risk_reward_ratio: Decimal
    pair: str | None = None

    def __post_init__(self) -> None:
        for name in (
            "trade_amount_quote",
            "min_profit_percentage",
            "risk_percentage",
            "risk_reward_ratio",
        ):
            value = to_decimal(getattr(self, name))
            if value is None or not value.is_finite():
                raise IntentValidationError(name, "must be a finite number")
            object.__setattr__(self, name, value)

        if self.trade_amount_quote <= ZERO:
            raise IntentValidationError("trade_amount_quote", "must be positive")
        if self.trade_amount_quote > MAX_TRADE_AMOUNT_QUOTE:
            raise IntentValidationError(
                "trade_amount_quote", f"must not exceed {MAX_TRADE_AMOUNT_QUOTE}"
            )
        if self.min_profit_percentage < ZERO:
            raise IntentValidationError("min_profit_percentage", "must not be negative")
        if not ZERO < self.risk_percentage <= HUNDRED:
            raise IntentValidationError("risk_percentage", "must be in (0, 100]")
        if self.risk_reward_ratio <= ZERO:
            raise IntentValidationError("risk_reward_ratio", "must be positive")

        if self.pair is not None:
            pair = self.pair.strip().upper()
            if "/" not in pair:
                raise IntentValidationError("pair", f"must be BASE/QUOTE, got {self.pair!r}")
            object.__setattr__(self, "pair", pair)

    @property
    def max_loss_quote(self) -> Decimal:
        """Largest acceptable loss in quote currency."""
        return self.trade_amount_quote * self.risk_percentage / HUNDRED

    @property
    def target_profit_quote(self) -> Decimal:
        """Profit target implied by the risk/reward ratio."""
        return self.max_loss_quote * self.risk_reward_ratio


# =============================================================================
# Result Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Opportunity:
    """
    Evaluated cross-exchange opportunity.

    Buy on `buy_exchange` at the ask-side VWAP, transfer over
    `common_network`, sell on `sell_exchange` at the bid-side VWAP.
    """

    pair: str
    buy_exchange: str
    sell_exchange: str
    buy_vwap: Decimal
    sell_vwap: Decimal
    gross_spread_pct: Decimal
    fees_pct: Decimal
    net_profit_pct: Decimal
    expected_profit_quote: Decimal
    risk_score: int
    recommendation_tier: RecommendationTier
    status: OpportunityStatus
    common_network: str
    trade_amount_quote: Decimal
    total_fees_quote: Decimal
    cycle_id: int = 0
    defaults_applied: frozenset[str] = frozenset()

    @property
    def recommendation(self) -> str:
        """Advice text for the risk tier."""
        return self.recommendation_tier.recommendation

    @property
    def is_available(self) -> bool:
        """Check if the opportunity clears the profit threshold."""
        return self.status == OpportunityStatus.AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        """Serialize with numeric fields as fixed-decimal strings."""
        return {
            "pair": self.pair,
            "buy_exchange": self.buy_exchange,
            "sell_exchange": self.sell_exchange,
            "buy_vwap": format_fixed(self.buy_vwap, PRICE_PRECISION),
            "sell_vwap": format_fixed(self.sell_vwap, PRICE_PRECISION),
            "gross_spread_pct": format_fixed(self.gross_spread_pct, PERCENTAGE_PRECISION),
            "fees_pct": format_fixed(self.fees_pct, PERCENTAGE_PRECISION),
            "net_profit_pct": format_fixed(self.net_profit_pct, PERCENTAGE_PRECISION),
            "expected_profit_quote": format_fixed(self.expected_profit_quote, AMOUNT_PRECISION),
            "trade_amount_quote": format_fixed(self.trade_amount_quote, AMOUNT_PRECISION),
            "total_fees_quote": format_fixed(self.total_fees_quote, AMOUNT_PRECISION),
            "risk_score": self.risk_score,
            "recommendation_tier": self.recommendation_tier.value,
            "recommendation": self.recommendation,
            "status": self.status.value,
            "common_network": self.common_network,
            "cycle_id": self.cycle_id,
            "defaults_applied": sorted(self.defaults_applied),
        }


@dataclass(slots=True, frozen=True)
class TradeRecord:
    """Executed, failed or simulated trade kept by the trade log."""

    id: int
    pair: str
    buy_exchange: str
    sell_exchange: str
    amount: Decimal
    buy_price: Decimal
    sell_price: Decimal
    profit_quote: Decimal
    profit_percentage: Decimal
    status: TradeStatus
    risk_score: int
    analysis_summary: str
    executed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pair": self.pair,
            "buy_exchange": self.buy_exchange,
            "sell_exchange": self.sell_exchange,
            "amount": format_fixed(self.amount, AMOUNT_PRECISION),
            "buy_price": format_fixed(self.buy_price, PRICE_PRECISION),
            "sell_price": format_fixed(self.sell_price, PRICE_PRECISION),
            "profit_quote": format_fixed(self.profit_quote, AMOUNT_PRECISION),
            "profit_percentage": format_fixed(self.profit_percentage, PERCENTAGE_PRECISION),
            "status": self.status.value,
            "risk_score": self.risk_score,
            "analysis_summary": self.analysis_summary,
            "executed_at": self.executed_at.isoformat(),
        }


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class ExchangeGateway(Protocol):
    """Protocol for market data access to many exchanges."""

    async def load_markets(self, exchange: str) -> frozenset[str]:
        """Get the unified symbols listed on an exchange."""
        ...

    async def fetch_order_book(self, exchange: str, pair: str, depth: int) -> RawOrderBook:
        """Fetch a normalized order book."""
        ...

    async def fetch_currency_status(self, exchange: str) -> dict[str, VenueHealth]:
        """Get transfer health keyed by currency code."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...


class NotificationSink(Protocol):
    """Protocol for outbound operator notifications."""

    async def notify(self, failure: VenueFailure) -> None:
        """Deliver a failure notification."""
        ...
