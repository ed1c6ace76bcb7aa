"""Trade record storage."""

from crossarb.storage.trade_log import DashboardStats, InMemoryTradeLog


__all__ = [
    "DashboardStats",
    "InMemoryTradeLog",
]
