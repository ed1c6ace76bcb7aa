"""
Metrics collection for scan monitoring.

Tracks fetch and scan latencies, venue failures and opportunity
statistics with bounded in-memory storage.
"""

import time
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from crossarb.core.errors import FailureKind
from crossarb.core.types import Opportunity
from crossarb.utils.math import ZERO


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class ScanStats:
    """Scan and opportunity statistics."""

    scans_completed: int = 0
    scans_failed: int = 0
    scans_timed_out: int = 0
    opportunities_found: int = 0
    opportunities_available: int = 0
    venue_failures: int = 0
    best_profit_pct: Decimal = ZERO
    last_cycle_id: int = 0

    @property
    def success_rate(self) -> float:
        """Share of scans that completed."""
        total = self.scans_completed + self.scans_failed + self.scans_timed_out
        return self.scans_completed / total if total > 0 else 0.0


class MetricsCollector:
    """
    Collects and aggregates monitor metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - Per-scan opportunity statistics
    """

    def __init__(self, latency_window_size: int = 1000) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._scan_stats = ScanStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "fetch.binance", "scan").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_scan(
        self,
        cycle_id: int,
        opportunities: Iterable[Opportunity],
        duration_us: int,
    ) -> None:
        """
        Record a completed scan.

        Args:
            cycle_id: Cycle the scan evaluated.
            opportunities: Opportunities it produced.
            duration_us: Wall time of the scan.
        """
        stats = self._scan_stats
        stats.scans_completed += 1
        stats.last_cycle_id = cycle_id
        self.record_latency("scan", duration_us)

        for opportunity in opportunities:
            stats.opportunities_found += 1
            if opportunity.is_available:
                stats.opportunities_available += 1
            if opportunity.net_profit_pct > stats.best_profit_pct:
                stats.best_profit_pct = opportunity.net_profit_pct

    def record_scan_failure(self, timed_out: bool = False) -> None:
        """Record a scan that raised."""
        if timed_out:
            self._scan_stats.scans_timed_out += 1
        else:
            self._scan_stats.scans_failed += 1

    def record_venue_failure(self, exchange: str, kind: FailureKind) -> None:
        """Record a classified venue failure."""
        self._scan_stats.venue_failures += 1
        self.increment_counter(f"failure.{kind.value}")
        self.increment_counter(f"failure.{exchange}")

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all metrics."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def scan_stats(self) -> ScanStats:
        """Get scan statistics."""
        return self._scan_stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """Export all metrics as a JSON-friendly dict."""
        stats = self._scan_stats
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": latency.min_us,
                    "max": latency.max_us,
                    "avg": latency.avg_us,
                    "p50": latency.p50_us,
                    "p99": latency.p99_us,
                    "count": latency.count,
                }
                for name, latency in self.get_all_latency_stats().items()
            },
            "scans": {
                "completed": stats.scans_completed,
                "failed": stats.scans_failed,
                "timed_out": stats.scans_timed_out,
                "opportunities_found": stats.opportunities_found,
                "opportunities_available": stats.opportunities_available,
                "venue_failures": stats.venue_failures,
                "best_profit_pct": str(stats.best_profit_pct),
                "last_cycle_id": stats.last_cycle_id,
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._scan_stats = ScanStats()
        self._start_time = time.time()
