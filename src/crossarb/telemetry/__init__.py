"""Telemetry module for logging, metrics, and reporting."""

from crossarb.telemetry.logger import AsyncLogger, setup_logging
from crossarb.telemetry.metrics import MetricsCollector
from crossarb.telemetry.reporter import ScanReporter, status_line


__all__ = [
    "AsyncLogger",
    "MetricsCollector",
    "ScanReporter",
    "setup_logging",
    "status_line",
]
