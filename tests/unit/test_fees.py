"""
Unit tests for fee accounting.

Tests round-trip cost computation and default substitution.
"""

from decimal import Decimal

from crossarb.core.types import ExchangeProfile
from crossarb.strategy.fees import FeeModel, compute_costs


class TestComputeCosts:
    """Tests for compute_costs."""

    def test_round_trip_costs(self) -> None:
        """Test buy fee, sell fee and withdrawal are summed."""
        costs = compute_costs(
            trade_amount_quote=Decimal("1000"),
            buy_taker_fee=Decimal("0.001"),
            sell_taker_fee=Decimal("0.001"),
            withdrawal_fee_quote=Decimal("1"),
            buy_vwap=Decimal("100"),
            sell_vwap=Decimal("102"),
        )

        # 1.00 buy + 1.02 sell + 1.00 withdrawal
        assert costs == Decimal("3.02")

    def test_zero_fees(self) -> None:
        """Test explicit zero fees cost nothing."""
        costs = compute_costs(
            trade_amount_quote=Decimal("500"),
            buy_taker_fee=Decimal("0"),
            sell_taker_fee=Decimal("0"),
            withdrawal_fee_quote=Decimal("0"),
            buy_vwap=Decimal("10"),
            sell_vwap=Decimal("11"),
        )

        assert costs == Decimal("0")


class TestFeeModel:
    """Tests for FeeModel."""

    def test_complete_profile_uses_no_defaults(self) -> None:
        """Test configured values pass through untouched."""
        profile = ExchangeProfile(
            name="kraken",
            maker_fee=Decimal("0.0016"),
            taker_fee=Decimal("0.0026"),
            withdrawal_fee_usdt=Decimal("2.5"),
        )

        fees = FeeModel().resolve("kraken", profile)

        assert fees.taker_fee == Decimal("0.0026")
        assert fees.maker_fee == Decimal("0.0016")
        assert fees.withdrawal_fee_quote == Decimal("2.5")
        assert fees.is_estimated is False

    def test_missing_profile_uses_all_defaults(self) -> None:
        """Test an unknown exchange gets every default."""
        model = FeeModel(
            default_maker_fee=Decimal("0.002"),
            default_taker_fee=Decimal("0.003"),
            default_withdrawal_fee_quote=Decimal("4"),
        )

        fees = model.resolve("okx", None)

        assert fees.taker_fee == Decimal("0.003")
        assert fees.maker_fee == Decimal("0.002")
        assert fees.withdrawal_fee_quote == Decimal("4")
        assert fees.defaults_applied == frozenset({"maker_fee", "taker_fee", "withdrawal_fee"})

    def test_partial_profile_records_substitutions(self) -> None:
        """Test only missing fields are defaulted."""
        profile = ExchangeProfile(name="bybit", taker_fee=Decimal("0.001"))

        fees = FeeModel().resolve("bybit", profile)

        assert fees.taker_fee == Decimal("0.001")
        assert fees.defaults_applied == frozenset({"maker_fee", "withdrawal_fee"})

    def test_zero_fee_is_not_missing(self) -> None:
        """Test an explicit zero is kept rather than defaulted."""
        profile = ExchangeProfile(name="mexc", taker_fee=Decimal("0"))

        fees = FeeModel().resolve("mexc", profile)

        assert fees.taker_fee == Decimal("0")
        assert "taker_fee" not in fees.defaults_applied
