"""
Unit tests for metrics and reporting.

Tests scan statistics, failure counters and terminal rendering.
"""

import io
from decimal import Decimal

from crossarb.core.errors import FailureKind
from crossarb.core.types import Opportunity, OpportunityStatus, RecommendationTier, VenueFailure
from crossarb.telemetry.metrics import MetricsCollector
from crossarb.telemetry.reporter import ScanReporter, status_line


def _opportunity(net_pct: str, status: OpportunityStatus) -> Opportunity:
    return Opportunity(
        pair="BTC/USDT",
        buy_exchange="binance",
        sell_exchange="kraken",
        buy_vwap=Decimal("100"),
        sell_vwap=Decimal("102"),
        gross_spread_pct=Decimal("2"),
        fees_pct=Decimal("0.3"),
        net_profit_pct=Decimal(net_pct),
        expected_profit_quote=Decimal("17"),
        risk_score=35,
        recommendation_tier=RecommendationTier.CAUTION,
        status=status,
        common_network="TRC20",
        trade_amount_quote=Decimal("1000"),
        total_fees_quote=Decimal("3"),
    )


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_record_scan(self, metrics: MetricsCollector) -> None:
        """Test scan stats accumulate."""
        metrics.record_scan(
            3,
            [
                _opportunity("1.7", OpportunityStatus.AVAILABLE),
                _opportunity("0.4", OpportunityStatus.ANALYZING),
            ],
            duration_us=2_000,
        )

        stats = metrics.scan_stats
        assert stats.scans_completed == 1
        assert stats.last_cycle_id == 3
        assert stats.opportunities_found == 2
        assert stats.opportunities_available == 1
        assert stats.best_profit_pct == Decimal("1.7")
        assert metrics.get_latency_stats("scan").count == 1

    def test_failures(self, metrics: MetricsCollector) -> None:
        """Test scan and venue failures are counted separately."""
        metrics.record_scan_failure()
        metrics.record_scan_failure(timed_out=True)
        metrics.record_venue_failure("kraken", FailureKind.AUTH)

        assert metrics.scan_stats.scans_failed == 1
        assert metrics.scan_stats.scans_timed_out == 1
        assert metrics.get_counter("failure.auth") == 1
        assert metrics.get_counter("failure.kraken") == 1
        assert metrics.to_dict()["scans"]["venue_failures"] == 1  # type: ignore[index]

    def test_reset(self, metrics: MetricsCollector) -> None:
        """Test reset clears everything."""
        metrics.increment_counter("x", 5)
        metrics.reset()

        assert metrics.get_counter("x") == 0


class TestScanReporter:
    """Tests for ScanReporter."""

    def test_render_lists_opportunities_and_failures(self, metrics: MetricsCollector) -> None:
        """Test the panel shows rows and recent failures."""
        reporter = ScanReporter(metrics, width=120)
        failure = VenueFailure(exchange="okx", kind=FailureKind.TRANSIENT, message="timed out")

        panel = reporter.render(
            [_opportunity("1.7", OpportunityStatus.AVAILABLE)],
            exchanges=["binance", "kraken", "okx"],
            failures=[failure],
        )

        assert "binance->kraken" in panel
        assert "+1.7000%" in panel
        assert "okx [transient] timed out" in panel

    def test_render_empty(self, metrics: MetricsCollector) -> None:
        """Test an empty cycle renders a placeholder."""
        panel = ScanReporter(metrics).render([])

        assert "No opportunities" in panel

    def test_summary_written_to_output(self, metrics: MetricsCollector) -> None:
        """Test the summary goes to the configured stream."""
        out = io.StringIO()

        ScanReporter(metrics, output=out).print_summary()

        assert "SESSION SUMMARY" in out.getvalue()
        assert status_line(metrics).startswith("Cycle 0")
