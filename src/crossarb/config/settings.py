"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation. Nested values (credentials,
fee overrides, pair lists) are read as JSON from the environment.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crossarb.config.constants import (
    AMOUNT_PRECISION,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_MAKER_FEE,
    DEFAULT_MAX_IN_FLIGHT,
    DEFAULT_METADATA_TIMEOUT,
    DEFAULT_MIN_PROFIT_PERCENTAGE,
    DEFAULT_PAIRS,
    DEFAULT_REFRESH_RATE_SEC,
    DEFAULT_REQUESTS_PER_SECOND,
    DEFAULT_RISK_PERCENTAGE,
    DEFAULT_RISK_REWARD_RATIO,
    DEFAULT_SCAN_TIMEOUT,
    DEFAULT_TAKER_FEE,
    DEFAULT_TRADE_AMOUNT_QUOTE,
    DEFAULT_WITHDRAWAL_FEE_QUOTE,
    MAJOR_EXCHANGES,
    MARKETS_CACHE_TTL,
    MAX_TRADE_AMOUNT_QUOTE,
    MIN_VENUES,
    ORDER_BOOK_DEPTH,
    PERCENTAGE_PRECISION,
    PREFERRED_NETWORKS,
    RISK_ANOMALY_PROFIT_PCT,
    RISK_SPREAD_THRESHOLD_PCT,
)
from crossarb.utils.math import format_fixed
from crossarb.utils.time import get_timestamp_ms


if TYPE_CHECKING:
    from crossarb.core.types import ExchangeProfile, TradeIntent


class ExchangeCredentials(BaseModel):
    """API credentials for a single exchange."""

    api_key: SecretStr
    secret: SecretStr
    password: SecretStr | None = None

    @field_validator("api_key", "secret", mode="after")
    @classmethod
    def validate_not_empty(cls, v: SecretStr) -> SecretStr:
        """Ensure credentials are not empty."""
        if not v.get_secret_value().strip():
            raise ValueError("Credential cannot be empty")
        return v


class ExchangeFees(BaseModel):
    """Per-exchange fee schedule. Missing fields fall back to defaults."""

    maker_fee: Decimal | None = Field(default=None, ge=0, le=Decimal("0.01"))
    taker_fee: Decimal | None = Field(default=None, ge=0, le=Decimal("0.01"))
    withdrawal_fee_usdt: Decimal | None = Field(default=None, ge=0)


RiskLevel = Literal["low", "medium", "high"]


class BotSettings(BaseModel):
    """
    Runtime bot settings.

    Seeded from Settings at startup and replaced through the API. Scans
    read the trade amount, profit threshold and risk level from here, and
    the monitor loop reads its refresh rate.
    """

    model_config = ConfigDict(frozen=True)

    is_active: bool = False
    risk_level: RiskLevel = "medium"
    min_profit_percentage: Decimal = Field(default=DEFAULT_MIN_PROFIT_PERCENTAGE, ge=0, le=100)
    trade_amount_quote: Decimal = Field(
        default=DEFAULT_TRADE_AMOUNT_QUOTE,
        gt=0,
        le=MAX_TRADE_AMOUNT_QUOTE,
    )
    refresh_rate_sec: int = Field(default=DEFAULT_REFRESH_RATE_SEC, ge=1, le=3600)
    updated_at_ms: int = Field(default_factory=get_timestamp_ms)

    def apply(self, update: "BotSettingsUpdate") -> "BotSettings":
        """Return a copy with the fields present in the update replaced."""
        changes = update.model_dump(exclude_none=True)
        changes["updated_at_ms"] = get_timestamp_ms()
        return self.model_copy(update=changes)

    def to_dict(self) -> dict[str, object]:
        return {
            "is_active": self.is_active,
            "risk_level": self.risk_level,
            "min_profit_percentage": format_fixed(self.min_profit_percentage, PERCENTAGE_PRECISION),
            "trade_amount_quote": format_fixed(self.trade_amount_quote, AMOUNT_PRECISION),
            "refresh_rate_sec": self.refresh_rate_sec,
            "updated_at_ms": self.updated_at_ms,
        }


class BotSettingsUpdate(BaseModel):
    """Partial update of the runtime bot settings. Omitted fields keep their value."""

    model_config = ConfigDict(extra="forbid")

    is_active: bool | None = None
    risk_level: RiskLevel | None = None
    min_profit_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    trade_amount_quote: Decimal | None = Field(default=None, gt=0, le=MAX_TRADE_AMOUNT_QUOTE)
    refresh_rate_sec: int | None = Field(default=None, ge=1, le=3600)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Sensitive values use SecretStr for safe handling.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Venues
    # =========================================================================

    exchange_credentials: dict[str, ExchangeCredentials] = Field(
        default_factory=dict,
        description="Credentials keyed by ccxt exchange id",
    )

    major_exchanges: list[str] = Field(
        default_factory=lambda: list(MAJOR_EXCHANGES),
        description="Public venues used when fewer than two are credentialed",
    )

    watch_pairs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PAIRS),
        description="Trading pairs to scan (unified BASE/QUOTE format)",
    )

    exchange_fees: dict[str, ExchangeFees] = Field(
        default_factory=dict,
        description="Fee schedule overrides keyed by exchange id",
    )

    # =========================================================================
    # Trade Intent
    # =========================================================================

    trade_amount_quote: Decimal = Field(
        default=DEFAULT_TRADE_AMOUNT_QUOTE,
        gt=0,
        le=MAX_TRADE_AMOUNT_QUOTE,
        description="Notional to simulate per opportunity, in quote currency",
    )

    min_profit_percentage: Decimal = Field(
        default=DEFAULT_MIN_PROFIT_PERCENTAGE,
        ge=0,
        le=100,
        description="Net profit percent at which an opportunity is available",
    )

    risk_percentage: Decimal = Field(
        default=DEFAULT_RISK_PERCENTAGE,
        gt=0,
        le=100,
        description="Share of the notional the user is willing to lose",
    )

    risk_reward_ratio: Decimal = Field(
        default=DEFAULT_RISK_REWARD_RATIO,
        gt=0,
        description="Target reward per unit of risk",
    )

    risk_level: RiskLevel = Field(
        default="medium",
        description="Highest risk tier treated as actionable",
    )

    # =========================================================================
    # Fee Defaults
    # =========================================================================

    default_maker_fee: Decimal = Field(default=DEFAULT_MAKER_FEE, ge=0, le=Decimal("0.01"))
    default_taker_fee: Decimal = Field(default=DEFAULT_TAKER_FEE, ge=0, le=Decimal("0.01"))
    default_withdrawal_fee_quote: Decimal = Field(
        default=DEFAULT_WITHDRAWAL_FEE_QUOTE,
        ge=0,
    )

    # =========================================================================
    # Risk Scoring
    # =========================================================================

    risk_spread_threshold_pct: Decimal = Field(
        default=RISK_SPREAD_THRESHOLD_PCT,
        gt=0,
        description="Top-of-book spread percent that triggers a volatility penalty",
    )

    risk_anomaly_profit_pct: Decimal = Field(
        default=RISK_ANOMALY_PROFIT_PCT,
        gt=0,
        description="Net profit percent treated as a likely data error",
    )

    # =========================================================================
    # Settlement Networks
    # =========================================================================

    preferred_networks: list[str] = Field(
        default_factory=lambda: list(PREFERRED_NETWORKS),
        description="Network tie-break order for common_network",
    )

    assume_healthy_when_unknown: bool = Field(
        default=False,
        description=(
            "Treat venues without currency status as healthy. Off by default: such "
            "venues are reported and excluded from pairing, which can leave the board "
            "empty when no venue exposes currency status without credentials. On, "
            "opportunities may route through wallets that are actually closed."
        ),
    )

    fallback_networks: list[str] = Field(
        default_factory=lambda: ["ERC20"],
        description="Networks assumed when currency status is unavailable",
    )

    # =========================================================================
    # Market Data
    # =========================================================================

    order_book_depth: int = Field(default=ORDER_BOOK_DEPTH, ge=1, le=500)

    fetch_timeout_s: float = Field(
        default=DEFAULT_FETCH_TIMEOUT,
        gt=0,
        le=60,
        description="Timeout for a single order-book fetch",
    )

    metadata_timeout_s: float = Field(
        default=DEFAULT_METADATA_TIMEOUT,
        gt=0,
        le=120,
        description="Timeout for market listing and currency status calls",
    )

    scan_timeout_s: float = Field(
        default=DEFAULT_SCAN_TIMEOUT,
        gt=0,
        le=300,
        description="Timeout for a complete scan cycle",
    )

    markets_cache_ttl_s: float = Field(default=MARKETS_CACHE_TTL, ge=0)

    max_in_flight_per_exchange: int = Field(
        default=DEFAULT_MAX_IN_FLIGHT,
        ge=1,
        le=50,
        description="Concurrent order-book requests per exchange",
    )

    requests_per_second: int = Field(
        default=DEFAULT_REQUESTS_PER_SECOND,
        ge=1,
        le=100,
        description="Request pacing per exchange",
    )

    refresh_rate_sec: int = Field(
        default=DEFAULT_REFRESH_RATE_SEC,
        ge=1,
        le=3600,
        description="Polling interval for the monitor loop",
    )

    # =========================================================================
    # Notifications
    # =========================================================================

    telegram_bot_token: SecretStr | None = Field(default=None)
    telegram_chat_id: str | None = Field(default=None)

    # =========================================================================
    # Operation Mode
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(default=None)

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("watch_pairs", mode="after")
    @classmethod
    def validate_pairs(cls, v: list[str]) -> list[str]:
        """Normalize pairs to upper-case BASE/QUOTE."""
        pairs = []
        for pair in v:
            base, sep, quote = pair.strip().upper().partition("/")
            if not sep or not base or not quote:
                raise ValueError(f"Pair must be BASE/QUOTE, got {pair!r}")
            pairs.append(f"{base}/{quote}")
        if not pairs:
            raise ValueError("At least one pair is required")
        return pairs

    @field_validator("major_exchanges", mode="after")
    @classmethod
    def validate_majors(cls, v: list[str]) -> list[str]:
        """Exchange ids are lower-case in ccxt."""
        return [name.strip().lower() for name in v if name.strip()]

    @field_validator("min_profit_percentage", mode="after")
    @classmethod
    def validate_profit_threshold(cls, v: Decimal) -> Decimal:
        """Warn if profit threshold is very low."""
        if v < Decimal("0.05"):
            import warnings

            warnings.warn(
                f"Profit threshold {v}% is very low, most candidates will be marked available",
                stacklevel=2,
            )
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def credentialed_exchanges(self) -> list[str]:
        """Exchange ids that carry credentials, sorted."""
        return sorted(name.lower() for name in self.exchange_credentials)

    @property
    def telegram_enabled(self) -> bool:
        """Check if Telegram delivery is configured."""
        return self.telegram_bot_token is not None and bool(self.telegram_chat_id)

    def scan_exchanges(self) -> list[str]:
        """
        Get the venue list for a scan.

        Credentialed exchanges when at least two exist, otherwise the major
        public exchanges plus whatever is credentialed.
        """
        credentialed = self.credentialed_exchanges
        if len(credentialed) >= MIN_VENUES:
            return credentialed
        return sorted(set(self.major_exchanges) | set(credentialed))

    def exchange_profiles(self) -> dict[str, "ExchangeProfile"]:
        """Build read-only fee profiles from the configured overrides."""
        from crossarb.core.types import ExchangeProfile

        return {
            name.lower(): ExchangeProfile(
                name=name.lower(),
                maker_fee=fees.maker_fee,
                taker_fee=fees.taker_fee,
                withdrawal_fee_usdt=fees.withdrawal_fee_usdt,
            )
            for name, fees in self.exchange_fees.items()
        }

    def bot_settings(self) -> BotSettings:
        """Initial runtime bot settings taken from the configuration."""
        return BotSettings(
            risk_level=self.risk_level,
            min_profit_percentage=self.min_profit_percentage,
            trade_amount_quote=self.trade_amount_quote,
            refresh_rate_sec=self.refresh_rate_sec,
        )

    def trade_intent(
        self,
        pair: str | None = None,
        trade_amount_quote: Decimal | None = None,
        min_profit_percentage: Decimal | None = None,
    ) -> "TradeIntent":
        """
        Build a TradeIntent from the stored settings.

        Args:
            pair: Optional focus pair.
            trade_amount_quote: Override for the simulated notional.
            min_profit_percentage: Override for the availability threshold.

        Returns:
            Validated TradeIntent.
        """
        from crossarb.core.types import TradeIntent

        return TradeIntent(
            pair=pair,
            trade_amount_quote=(
                trade_amount_quote if trade_amount_quote is not None else self.trade_amount_quote
            ),
            min_profit_percentage=(
                min_profit_percentage
                if min_profit_percentage is not None
                else self.min_profit_percentage
            ),
            risk_percentage=self.risk_percentage,
            risk_reward_ratio=self.risk_reward_ratio,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
