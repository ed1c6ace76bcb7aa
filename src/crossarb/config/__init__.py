"""Configuration module for the arbitrage monitor."""

from crossarb.config.constants import (
    DEFAULT_MAKER_FEE,
    DEFAULT_TAKER_FEE,
    DEFAULT_WITHDRAWAL_FEE_QUOTE,
    MAJOR_EXCHANGES,
    PREFERRED_NETWORKS,
)
from crossarb.config.settings import (
    BotSettings,
    BotSettingsUpdate,
    ExchangeCredentials,
    ExchangeFees,
    Settings,
    get_settings,
)


__all__ = [
    "DEFAULT_MAKER_FEE",
    "DEFAULT_TAKER_FEE",
    "DEFAULT_WITHDRAWAL_FEE_QUOTE",
    "MAJOR_EXCHANGES",
    "PREFERRED_NETWORKS",
    "BotSettings",
    "BotSettingsUpdate",
    "ExchangeCredentials",
    "ExchangeFees",
    "Settings",
    "get_settings",
]
