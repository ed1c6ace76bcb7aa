"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from decimal import Decimal

import pytest

from crossarb.config.settings import Settings
from crossarb.core.event_bus import EventBus
from crossarb.core.types import TradeIntent
from crossarb.strategy.evaluator import OpportunityEvaluator
from crossarb.telemetry.metrics import MetricsCollector
from tests.mocks import FakeGateway


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with two public venues and one watched pair, ignoring any .env."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        major_exchanges=["binance", "kraken"],
        watch_pairs=["BTC/USDT"],
        fetch_timeout_s=1.0,
        metadata_timeout_s=1.0,
        scan_timeout_s=5.0,
        requests_per_second=100,
    )


@pytest.fixture
def intent() -> TradeIntent:
    """1000 USDT intent with a 1% availability threshold."""
    return TradeIntent(
        trade_amount_quote=Decimal("1000"),
        min_profit_percentage=Decimal("1"),
        risk_percentage=Decimal("1"),
        risk_reward_ratio=Decimal("2"),
    )


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def evaluator() -> OpportunityEvaluator:
    """Evaluator with default fees and risk thresholds."""
    return OpportunityEvaluator()


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector."""
    return MetricsCollector()


@pytest.fixture
def gateway() -> FakeGateway:
    """
    Gateway with BTC/USDT on two venues.

    Binance asks 100, kraken bids 102, both with deep books.
    """
    gateway = FakeGateway()
    gateway.add_book("binance", "BTC/USDT", bids=[(99, 1000)], asks=[(100, 1000)])
    gateway.add_book("kraken", "BTC/USDT", bids=[(102, 1000)], asks=[(103, 1000)])
    return gateway
