"""
Unit tests for the in-memory trade log.

Tests record ordering, filtering and dashboard aggregates.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from crossarb.core.types import Opportunity, OpportunityStatus, RecommendationTier, TradeStatus
from crossarb.storage.trade_log import InMemoryTradeLog


NOW = datetime(2024, 3, 10, 15, 30, tzinfo=UTC)


def _record(
    log: InMemoryTradeLog,
    profit: str,
    status: TradeStatus = TradeStatus.EXECUTED,
    executed_at: datetime = NOW,
) -> None:
    log.record(
        pair="BTC/USDT",
        buy_exchange="binance",
        sell_exchange="kraken",
        amount=Decimal("100"),
        buy_price=Decimal("100"),
        sell_price=Decimal("101"),
        profit_quote=Decimal(profit),
        profit_percentage=Decimal(profit),
        status=status,
        executed_at=executed_at,
    )


class TestInMemoryTradeLog:
    """Tests for InMemoryTradeLog."""

    @pytest.fixture
    def log(self) -> InMemoryTradeLog:
        """Create empty log."""
        return InMemoryTradeLog()

    def test_ids_are_sequential(self, log: InMemoryTradeLog) -> None:
        """Test records get increasing ids."""
        _record(log, "1")
        _record(log, "2")

        assert [r.id for r in log.list()] == [2, 1]
        assert len(log) == 2

    def test_list_filters_and_limits(self, log: InMemoryTradeLog) -> None:
        """Test status filter and limit."""
        _record(log, "1")
        _record(log, "-3", TradeStatus.FAILED)
        _record(log, "2", TradeStatus.SIMULATED)
        _record(log, "4")

        executed = log.list(status=TradeStatus.EXECUTED)
        latest = log.list(limit=2)

        assert [r.profit_quote for r in executed] == [Decimal("4"), Decimal("1")]
        assert [r.id for r in latest] == [4, 3]

    def test_get(self, log: InMemoryTradeLog) -> None:
        """Test lookup by id."""
        _record(log, "1")

        assert log.get(1) is not None
        assert log.get(99) is None

    def test_max_records(self) -> None:
        """Test oldest records are dropped beyond capacity."""
        log = InMemoryTradeLog(max_records=2)
        for profit in ("1", "2", "3"):
            _record(log, profit)

        assert [r.id for r in log.list()] == [3, 2]

    def test_dashboard_stats(self, log: InMemoryTradeLog) -> None:
        """Test failed trades add no profit and today starts at midnight UTC."""
        _record(log, "10")
        _record(log, "2.5", TradeStatus.SIMULATED)
        _record(log, "-7", TradeStatus.FAILED)
        _record(log, "5", executed_at=NOW - timedelta(days=1))

        stats = log.dashboard_stats(now=NOW)

        assert stats.total_profit == Decimal("17.5")
        assert stats.trades_today == 3
        assert stats.total_trades == 4
        assert stats.to_dict() == {"total_profit": "17.50", "trades_today": 3, "total_trades": 4}

    def test_empty_dashboard(self, log: InMemoryTradeLog) -> None:
        """Test an empty log reports zeros."""
        assert log.dashboard_stats(now=NOW).to_dict()["total_profit"] == "0.00"

    def test_record_opportunity(self, log: InMemoryTradeLog) -> None:
        """Test opportunities are stored as simulated trades."""
        opp = Opportunity(
            pair="ETH/USDT",
            buy_exchange="okx",
            sell_exchange="bybit",
            buy_vwap=Decimal("3000"),
            sell_vwap=Decimal("3050"),
            gross_spread_pct=Decimal("1.6667"),
            fees_pct=Decimal("0.5"),
            net_profit_pct=Decimal("1.1"),
            expected_profit_quote=Decimal("11"),
            risk_score=15,
            recommendation_tier=RecommendationTier.SAFE,
            status=OpportunityStatus.AVAILABLE,
            common_network="ARBITRUM",
            trade_amount_quote=Decimal("1000"),
            total_fees_quote=Decimal("5"),
        )

        record = log.record_opportunity(opp)

        assert record.status == TradeStatus.SIMULATED
        assert record.buy_price == Decimal("3000")
        assert record.profit_quote == Decimal("11")
        assert "ARBITRUM" in record.analysis_summary
        assert record.to_dict()["status"] == "simulated"
