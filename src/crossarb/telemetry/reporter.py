"""
CLI reporter for scan results.

Renders a terminal panel with scan health, venue status and the top
opportunities of the latest cycle.
"""

import sys
from collections.abc import Sequence
from datetime import timedelta
from typing import TextIO

from crossarb.core.types import Opportunity, VenueFailure
from crossarb.telemetry.metrics import MetricsCollector
from crossarb.utils.math import format_fixed, format_profit
from crossarb.utils.time import format_duration_us


class ScanReporter:
    """
    Terminal dashboard for the polling monitor.

    Displays a formatted panel with:
    - Uptime, cycle and venue counts
    - Scan latency and success counts
    - The best opportunities of the last cycle
    - Venues that failed in the last cycle
    """

    # Box drawing characters
    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣
    THIN_V = "\u2502"  # │

    def __init__(
        self,
        metrics: MetricsCollector,
        width: int = 96,
        max_rows: int = 10,
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize reporter.

        Args:
            metrics: Metrics collector instance.
            width: Panel width in characters.
            max_rows: Opportunities to show.
            output: Output stream (default: stdout).
        """
        self._metrics = metrics
        self._width = width
        self._max_rows = max_rows
        self._output = output or sys.stdout

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        total = int(timedelta(seconds=int(seconds)).total_seconds())
        hours, remainder = divmod(total, 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _pad(self, text: str, width: int) -> str:
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self) -> str:
        return f"{self.BOX_LT}{self.BOX_H * (self._width - 2)}{self.BOX_RT}"

    def _opportunity_row(self, opp: Opportunity) -> str:
        v = self.THIN_V
        route = f"{opp.buy_exchange}->{opp.sell_exchange}"
        return (
            f"  {opp.pair:<11}{v} {route:<19}{v} {format_profit(opp.net_profit_pct):>10} "
            f"{v} {format_fixed(opp.expected_profit_quote, 2):>9} {v} {opp.risk_score:>3} "
            f"{opp.recommendation_tier.value:<9}{v} {opp.common_network:<8}{v} {opp.status.value}"
        )

    def render(
        self,
        opportunities: Sequence[Opportunity],
        exchanges: Sequence[str] = (),
        failures: Sequence[VenueFailure] = (),
    ) -> str:
        """
        Render the panel.

        Args:
            opportunities: Opportunities sorted best first.
            exchanges: Venues scanned in the last cycle.
            failures: Venue failures of the last cycle.

        Returns:
            Formatted panel string.
        """
        stats = self._metrics.scan_stats
        scan_latency = self._metrics.get_latency_stats("scan")
        uptime = self._format_uptime(self._metrics.uptime_seconds)
        v = self.THIN_V

        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]
        lines.append(self._line("  CROSS-EXCHANGE ARBITRAGE MONITOR | MONITORING ONLY"))
        lines.append(self._divider())

        lines.append(
            self._line(
                f"  Uptime: {uptime}  |  Cycle: {stats.last_cycle_id}  |  "
                f"Venues: {len(exchanges)}  |  Failures: {len(failures)}"
            )
        )
        avg = format_duration_us(int(scan_latency.avg_us)) if scan_latency.count else "---"
        lines.append(
            self._line(
                f"  Scans: {stats.scans_completed} ok / {stats.scans_failed} failed / "
                f"{stats.scans_timed_out} timed out  |  Avg scan: {avg}  |  "
                f"Best: {format_profit(stats.best_profit_pct)}"
            )
        )
        lines.append(self._divider())

        header = (
            f"  {'PAIR':<11}{v} {'ROUTE':<19}{v} {'NET %':>10} {v} {'PROFIT':>9} "
            f"{v} {'RISK':<13}{v} {'NETWORK':<8}{v} STATUS"
        )
        lines.append(self._line(header))

        if not opportunities:
            lines.append(self._line("  No opportunities in the last cycle"))
        for opp in opportunities[: self._max_rows]:
            lines.append(self._line(self._opportunity_row(opp)))

        if failures:
            lines.append(self._divider())
            for failure in failures[:5]:
                where = f"{failure.exchange}:{failure.pair}" if failure.pair else failure.exchange
                lines.append(self._line(f"  ! {where} [{failure.kind.value}] {failure.message}"))

        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")
        return "\n".join(lines)

    def display(
        self,
        opportunities: Sequence[Opportunity],
        exchanges: Sequence[str] = (),
        failures: Sequence[VenueFailure] = (),
    ) -> None:
        """Clear the terminal and draw the panel once."""
        self._output.write("\033[2J\033[H")
        self._output.write(self.render(opportunities, exchanges, failures))
        self._output.write("\n")
        self._output.flush()

    def print_summary(self) -> None:
        """Print a final session summary."""
        stats = self._metrics.scan_stats
        uptime = self._format_uptime(self._metrics.uptime_seconds)

        out = self._output
        out.write("\n" + "=" * 50 + "\n")
        out.write("  SESSION SUMMARY\n")
        out.write("=" * 50 + "\n")
        out.write(f"  Uptime: {uptime}\n")
        out.write(f"  Scans completed: {stats.scans_completed:,}\n")
        out.write(f"  Scans failed:    {stats.scans_failed + stats.scans_timed_out:,}\n")
        out.write(f"  Success rate:    {stats.success_rate:.1%}\n\n")
        out.write("  OPPORTUNITIES:\n")
        out.write(f"    Found:     {stats.opportunities_found:,}\n")
        out.write(f"    Available: {stats.opportunities_available:,}\n")
        out.write(f"    Best net:  {format_profit(stats.best_profit_pct)}\n")
        out.write(f"  Venue failures: {stats.venue_failures:,}\n")
        out.write("=" * 50 + "\n")
        out.flush()


def status_line(metrics: MetricsCollector) -> str:
    """Single-line status for log output."""
    stats = metrics.scan_stats
    scan = metrics.get_latency_stats("scan")
    return (
        f"Cycle {stats.last_cycle_id} | "
        f"Opp: {stats.opportunities_found}/{stats.opportunities_available} | "
        f"Failures: {stats.venue_failures} | "
        f"Scan: {format_duration_us(int(scan.avg_us))}"
    )
