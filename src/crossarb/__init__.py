"""
Cross-Exchange Arbitrage Monitor.

An asynchronous engine that polls order books across crypto exchanges and
ranks fee-aware, volume-aware, risk-scored arbitrage opportunities.
"""

__version__ = "1.0.0"
__author__ = "Tim"
