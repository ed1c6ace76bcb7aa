"""Exchange integration through ccxt."""

from crossarb.exchange.gateway import CcxtGateway, classify_error
from crossarb.exchange.models import CurrencyData, NetworkData, OrderBookData
from crossarb.exchange.rate_limiter import ExchangeThrottle, ThrottlePool, TokenBucket
from crossarb.exchange.registry import ExchangeRegistry, ccxt_factory


__all__ = [
    "CcxtGateway",
    "CurrencyData",
    "ExchangeRegistry",
    "ExchangeThrottle",
    "NetworkData",
    "OrderBookData",
    "ThrottlePool",
    "TokenBucket",
    "ccxt_factory",
    "classify_error",
]
