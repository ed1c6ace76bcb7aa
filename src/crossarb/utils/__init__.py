"""Utility functions for the arbitrage monitor."""

from crossarb.utils.math import (
    format_fixed,
    format_profit,
    is_usable,
    percent_of,
    safe_divide,
    to_decimal,
)
from crossarb.utils.time import (
    LatencyTimer,
    format_duration_us,
    format_timestamp_ms,
    get_timestamp_ms,
    get_timestamp_us,
    utc_now,
)


__all__ = [
    "LatencyTimer",
    "format_duration_us",
    "format_fixed",
    "format_profit",
    "format_timestamp_ms",
    "get_timestamp_ms",
    "get_timestamp_us",
    "is_usable",
    "percent_of",
    "safe_divide",
    "to_decimal",
    "utc_now",
]
