"""
Unit tests for VWAP estimation.

Tests depth walking, thin-book fallback and malformed level handling.
"""

from decimal import Decimal

from crossarb.core.types import OrderBookLevel
from crossarb.strategy.vwap import estimate_vwap
from tests.mocks import make_levels


class TestEstimateVwap:
    """Tests for estimate_vwap."""

    def test_single_level_fill(self) -> None:
        """Test a fill inside the first level returns its price."""
        levels = make_levels([(100, 5), (101, 5)])

        assert estimate_vwap(levels, Decimal("200")) == Decimal("100")

    def test_walks_multiple_levels(self) -> None:
        """Test fills spanning levels are volume weighted."""
        levels = make_levels([(100, 1), (200, 1)])

        # 100 quote buys 1 unit at 100, the next 200 buys 1 unit at 200
        vwap = estimate_vwap(levels, Decimal("300"))

        assert vwap == Decimal("150")

    def test_thin_book_prices_remainder_at_last_level(self) -> None:
        """Test unfilled notional is priced at the worst visible level."""
        levels = make_levels([(100, 1), (110, 1)])

        vwap = estimate_vwap(levels, Decimal("1000"))

        # 210 quote fills 2 units, the remaining 790 is priced at 110
        expected = Decimal("1000") / (Decimal("2") + Decimal("790") / Decimal("110"))
        assert vwap == expected
        assert Decimal("100") < vwap <= Decimal("110")

    def test_empty_book_returns_zero(self) -> None:
        """Test no levels yields zero."""
        assert estimate_vwap((), Decimal("100")) == Decimal("0")

    def test_skips_unusable_levels(self) -> None:
        """Test zero, negative and non-finite levels are ignored."""
        levels = (
            OrderBookLevel(Decimal("0"), Decimal("5")),
            OrderBookLevel(Decimal("NaN"), Decimal("5")),
            OrderBookLevel(Decimal("99"), Decimal("-1")),
            OrderBookLevel(Decimal("101"), Decimal("10")),
        )

        assert estimate_vwap(levels, Decimal("500")) == Decimal("101")

    def test_only_unusable_levels_returns_zero(self) -> None:
        """Test a book of anomalies yields zero."""
        levels = (OrderBookLevel(Decimal("Infinity"), Decimal("1")),)

        assert estimate_vwap(levels, Decimal("100")) == Decimal("0")

    def test_non_positive_target_returns_best_price(self) -> None:
        """Test zero notional returns the best level."""
        levels = make_levels([(100, 1), (101, 1)])

        assert estimate_vwap(levels, Decimal("0")) == Decimal("100")

    def test_larger_orders_never_price_better(self) -> None:
        """Test asks VWAP is non-decreasing as notional grows."""
        levels = make_levels([(100, 1), (101, 2), (105, 3)])

        prices = [estimate_vwap(levels, Decimal(n)) for n in (50, 100, 250, 400, 900, 2000)]

        assert prices == sorted(prices)

    def test_bid_side_never_prices_better(self) -> None:
        """Test bids VWAP is non-increasing as notional grows."""
        levels = make_levels([(100, 1), (98, 2), (95, 3)])

        prices = [estimate_vwap(levels, Decimal(n)) for n in (50, 100, 250, 400, 900, 2000)]

        assert prices == sorted(prices, reverse=True)
