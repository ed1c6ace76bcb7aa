"""
Monitoring constants and configuration defaults.

This module contains all hardcoded values used throughout the engine.
Values are organized by category for easy maintenance and auditing.
"""

from decimal import Decimal
from typing import Final


# =============================================================================
# Venues
# =============================================================================

# Public venues used when fewer than two credentialed exchanges exist
MAJOR_EXCHANGES: Final[tuple[str, ...]] = (
    "binance",
    "bybit",
    "kucoin",
    "okx",
)

DEFAULT_PAIRS: Final[tuple[str, ...]] = (
    "BTC/USDT",
    "ETH/USDT",
    "SOL/USDT",
    "XRP/USDT",
    "DOGE/USDT",
)

# Arbitrage needs at least two venues
MIN_VENUES: Final[int] = 2


# =============================================================================
# Trading Fees
# =============================================================================

# Substituted when a venue profile does not carry its own rates
DEFAULT_MAKER_FEE: Final[Decimal] = Decimal("0.001")
DEFAULT_TAKER_FEE: Final[Decimal] = Decimal("0.001")

# Flat withdrawal/network fee in quote units
DEFAULT_WITHDRAWAL_FEE_QUOTE: Final[Decimal] = Decimal("1.0")


# =============================================================================
# Trade Intent Defaults
# =============================================================================

DEFAULT_TRADE_AMOUNT_QUOTE: Final[Decimal] = Decimal("100")
# Upper bound on the simulated notional
MAX_TRADE_AMOUNT_QUOTE: Final[Decimal] = Decimal("1000000000")
DEFAULT_MIN_PROFIT_PERCENTAGE: Final[Decimal] = Decimal("0.8")
DEFAULT_RISK_PERCENTAGE: Final[Decimal] = Decimal("1.0")
DEFAULT_RISK_REWARD_RATIO: Final[Decimal] = Decimal("2.0")
DEFAULT_REFRESH_RATE_SEC: Final[int] = 10


# =============================================================================
# Risk Scoring
# =============================================================================

RISK_BASE_SCORE: Final[int] = 15

# Top-of-book spread (percent) above which the snapshot is considered volatile
RISK_SPREAD_THRESHOLD_PCT: Final[Decimal] = Decimal("0.3")
RISK_SPREAD_PENALTY: Final[int] = 20

# Net profit as percent of notional above which the spread is implausible
RISK_ANOMALY_PROFIT_PCT: Final[Decimal] = Decimal("5")
RISK_ANOMALY_PENALTY: Final[int] = 40

RISK_UNHEALTHY_WALLET_PENALTY: Final[int] = 50

RISK_SAFE_MAX: Final[int] = 30
RISK_CAUTION_MAX: Final[int] = 60


# =============================================================================
# Market Data
# =============================================================================

ORDER_BOOK_DEPTH: Final[int] = 20

# Timeouts (seconds)
DEFAULT_FETCH_TIMEOUT: Final[float] = 5.0
DEFAULT_METADATA_TIMEOUT: Final[float] = 10.0
DEFAULT_SCAN_TIMEOUT: Final[float] = 30.0

# Listed-pair cache lifetime (seconds)
MARKETS_CACHE_TTL: Final[float] = 3600.0


# =============================================================================
# Rate Limiting
# =============================================================================

DEFAULT_MAX_IN_FLIGHT: Final[int] = 4
DEFAULT_REQUESTS_PER_SECOND: Final[int] = 10


# =============================================================================
# Settlement Networks
# =============================================================================

# Tie-break order when two venues share several networks
PREFERRED_NETWORKS: Final[tuple[str, ...]] = (
    "TRC20",
    "BEP20",
    "SOL",
    "ARBITRUM",
    "ERC20",
)


# =============================================================================
# Precision & Formatting
# =============================================================================

PRICE_PRECISION: Final[int] = 8
AMOUNT_PRECISION: Final[int] = 4
PERCENTAGE_PRECISION: Final[int] = 4


# =============================================================================
# Notifications
# =============================================================================

TELEGRAM_API_URL: Final[str] = "https://api.telegram.org"
NOTIFY_TIMEOUT: Final[float] = 5.0


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
