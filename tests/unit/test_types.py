"""
Unit tests for core types.

Tests intent validation, snapshot properties and serialization.
"""

from decimal import Decimal

import pytest

from crossarb.core.errors import (
    FailureKind,
    IntentValidationError,
    TransientVenueError,
    VenueAuthError,
)
from crossarb.core.types import (
    Opportunity,
    OpportunityStatus,
    RecommendationTier,
    Severity,
    TradeIntent,
    VenueFailure,
    VenueHealth,
    WalletStatus,
)
from tests.mocks import make_snapshot


def _intent(**overrides: object) -> TradeIntent:
    params: dict[str, object] = {
        "trade_amount_quote": "100",
        "min_profit_percentage": "0.8",
        "risk_percentage": "1",
        "risk_reward_ratio": "2",
    }
    params.update(overrides)
    return TradeIntent(**params)  # type: ignore[arg-type]


class TestTradeIntent:
    """Tests for TradeIntent validation."""

    def test_coerces_to_decimal(self) -> None:
        """Test string and float inputs become Decimal."""
        intent = _intent(trade_amount_quote=250.5)

        assert intent.trade_amount_quote == Decimal("250.5")
        assert isinstance(intent.min_profit_percentage, Decimal)

    def test_derived_amounts(self) -> None:
        """Test max loss and profit target."""
        intent = _intent(trade_amount_quote="1000", risk_percentage="2", risk_reward_ratio="3")

        assert intent.max_loss_quote == Decimal("20")
        assert intent.target_profit_quote == Decimal("60")

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("trade_amount_quote", "0"),
            ("trade_amount_quote", "-5"),
            ("min_profit_percentage", "-0.1"),
            ("risk_percentage", "0"),
            ("risk_percentage", "100.1"),
            ("risk_reward_ratio", "0"),
            ("trade_amount_quote", "NaN"),
            ("trade_amount_quote", None),
            ("trade_amount_quote", "1E+30"),
            ("trade_amount_quote", "1000000000.01"),
        ],
    )
    def test_rejects_out_of_range(self, field: str, value: object) -> None:
        """Test each bound raises with the offending field."""
        with pytest.raises(IntentValidationError) as exc_info:
            _intent(**{field: value})

        assert exc_info.value.field == field

    def test_largest_amount_allowed(self) -> None:
        """Test the notional cap itself is accepted."""
        assert _intent(trade_amount_quote="1000000000").trade_amount_quote == Decimal("1000000000")

    def test_zero_threshold_allowed(self) -> None:
        """Test a zero profit threshold is valid."""
        assert _intent(min_profit_percentage="0").min_profit_percentage == Decimal("0")

    def test_pair_normalized(self) -> None:
        """Test pairs are upper-cased and trimmed."""
        assert _intent(pair=" btc/usdt ").pair == "BTC/USDT"

    def test_pair_requires_separator(self) -> None:
        """Test a pair without BASE/QUOTE form is rejected."""
        with pytest.raises(IntentValidationError):
            _intent(pair="BTCUSDT")

    def test_validation_error_is_value_error(self) -> None:
        """Test callers can catch ValueError."""
        with pytest.raises(ValueError):
            _intent(trade_amount_quote="-1")


class TestOrderBookSnapshot:
    """Tests for OrderBookSnapshot properties."""

    def test_best_prices_and_spread(self) -> None:
        """Test top of book and spread percentage."""
        snapshot = make_snapshot("binance", bids=[(99, 1), (98, 1)], asks=[(101, 1)])

        assert snapshot.best_bid == Decimal("99")
        assert snapshot.best_ask == Decimal("101")
        assert snapshot.spread_pct == Decimal("2")
        assert snapshot.has_liquidity
        assert not snapshot.is_crossed

    def test_one_sided_book(self) -> None:
        """Test an empty side has no liquidity and zero spread."""
        snapshot = make_snapshot("binance", bids=[], asks=[(101, 1)])

        assert snapshot.best_bid is None
        assert not snapshot.has_liquidity
        assert snapshot.spread_pct == Decimal("0")

    def test_crossed_book(self) -> None:
        """Test bid above ask is flagged."""
        assert make_snapshot("okx", bids=[(102, 1)], asks=[(101, 1)]).is_crossed

    def test_junk_top_level_is_skipped(self) -> None:
        """Test zero-size and zero-price top levels do not set the top of book."""
        snapshot = make_snapshot(
            "okx",
            bids=[(105, 0), (99, 1)],
            asks=[(0, 5), (101, 1)],
        )

        assert snapshot.best_bid == Decimal("99")
        assert snapshot.best_ask == Decimal("101")
        assert snapshot.spread_pct == Decimal("2")
        assert not snapshot.is_crossed

    def test_only_junk_levels(self) -> None:
        """Test a side made only of empty levels has no liquidity."""
        snapshot = make_snapshot("okx", bids=[(99, 0)], asks=[(101, 1)])

        assert snapshot.best_bid is None
        assert not snapshot.has_liquidity
        assert snapshot.spread_pct == Decimal("0")
        assert not snapshot.is_crossed


class TestVenueHealth:
    """Tests for VenueHealth."""

    def test_unknown_is_not_healthy(self) -> None:
        """Test missing status is treated as maintenance."""
        health = VenueHealth.unknown()

        assert health.wallet_status == WalletStatus.MAINTENANCE
        assert not health.is_healthy

    def test_fallback_networks_fill_empty_set(self) -> None:
        """Test fallback networks apply only to open wallets without networks."""
        fallback = frozenset({"ERC20"})

        assert VenueHealth(WalletStatus.OK).with_fallback_networks(fallback).supported_networks == fallback
        reported = VenueHealth(WalletStatus.OK, frozenset({"TRC20"}))
        assert reported.with_fallback_networks(fallback) is reported
        closed = VenueHealth.unknown()
        assert closed.with_fallback_networks(fallback).supported_networks == frozenset()


class TestVenueFailure:
    """Tests for VenueFailure."""

    def test_auth_failures_are_high_severity(self) -> None:
        """Test credential problems escalate."""
        failure = VenueFailure.from_error(VenueAuthError("kraken", "invalid key"))

        assert failure.kind == FailureKind.AUTH
        assert failure.severity == Severity.HIGH

    def test_transient_failures_are_low_severity(self) -> None:
        """Test timeouts do not escalate."""
        failure = VenueFailure.from_error(TransientVenueError("okx", "timed out", "BTC/USDT"))

        assert failure.severity == Severity.LOW
        assert failure.to_dict()["pair"] == "BTC/USDT"
        assert failure.to_dict()["kind"] == "transient"


class TestOpportunity:
    """Tests for Opportunity serialization."""

    def test_to_dict_uses_fixed_point_strings(self) -> None:
        """Test numeric fields serialize without exponents."""
        opp = Opportunity(
            pair="BTC/USDT",
            buy_exchange="binance",
            sell_exchange="kraken",
            buy_vwap=Decimal("100"),
            sell_vwap=Decimal("102"),
            gross_spread_pct=Decimal("2"),
            fees_pct=Decimal("0.302"),
            net_profit_pct=Decimal("1.698"),
            expected_profit_quote=Decimal("16.98"),
            risk_score=35,
            recommendation_tier=RecommendationTier.CAUTION,
            status=OpportunityStatus.AVAILABLE,
            common_network="TRC20",
            trade_amount_quote=Decimal("1000"),
            total_fees_quote=Decimal("3.02"),
            cycle_id=7,
            defaults_applied=frozenset({"kraken.taker_fee", "binance.taker_fee"}),
        )

        data = opp.to_dict()

        assert data["buy_vwap"] == "100.00000000"
        assert data["net_profit_pct"] == "1.6980"
        assert data["expected_profit_quote"] == "16.9800"
        assert data["recommendation_tier"] == "caution"
        assert data["recommendation"] == RecommendationTier.CAUTION.recommendation
        assert data["status"] == "available"
        assert data["defaults_applied"] == ["binance.taker_fee", "kraken.taker_fee"]
        assert opp.is_available
