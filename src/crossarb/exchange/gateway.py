"""
ccxt-backed exchange gateway.

Normalizes market listings, order books and currency status from any
ccxt exchange into core types, and translates ccxt exceptions into the
monitor's venue error taxonomy so the aggregator can decide whether to
retry, skip or escalate.
"""

import asyncio
import logging
import re
from typing import Any, Final

import ccxt.async_support as ccxt
from pydantic import ValidationError

from crossarb.core.errors import (
    FailureKind,
    PairNotListedError,
    TransientVenueError,
    VenueAccessBlockedError,
    VenueAuthError,
    VenueError,
)
from crossarb.core.types import RawOrderBook, VenueHealth
from crossarb.exchange.models import CurrencyData, OrderBookData
from crossarb.exchange.registry import ExchangeRegistry


logger = logging.getLogger(__name__)


# Status codes and phrases exchanges use when refusing service by location
ACCESS_BLOCK_PATTERN: Final = re.compile(
    r"\b(?:403|451)\b"
    r"|restricted location"
    r"|(?:not available|unavailable) in your (?:country|region)",
    re.IGNORECASE,
)

# Throttling and timeouts, retried next cycle whatever the message says
RETRYABLE_ERRORS: Final[tuple[type[Exception], ...]] = (
    ccxt.RequestTimeout,
    ccxt.RateLimitExceeded,
    ccxt.DDoSProtection,
)

AUTH_ERRORS: Final[tuple[type[Exception], ...]] = (
    ccxt.AuthenticationError,
    ccxt.PermissionDenied,
    ccxt.AccountSuspended,
    ccxt.AccountNotEnabled,
)


def classify_error(exc: BaseException, exchange: str, pair: str | None = None) -> VenueError:
    """
    Map an exception to a venue error.

    Args:
        exc: Exception raised by ccxt or asyncio.
        exchange: Exchange id the call targeted.
        pair: Pair the call targeted, if any.

    Returns:
        Classified VenueError subclass.
    """
    if isinstance(exc, VenueError):
        return exc

    message = str(exc) or type(exc).__name__

    if isinstance(exc, asyncio.TimeoutError):
        return TransientVenueError(exchange, f"timeout: {message}", pair)

    if isinstance(exc, RETRYABLE_ERRORS):
        return TransientVenueError(exchange, message, pair)

    # Rejected credentials stay auth errors. Permission refusals and outages
    # are checked for location blocks first.
    credential_error = isinstance(exc, AUTH_ERRORS) and not isinstance(exc, ccxt.PermissionDenied)
    if not credential_error and is_access_block(message):
        return VenueAccessBlockedError(exchange, message, pair)

    if isinstance(exc, AUTH_ERRORS):
        return VenueAuthError(exchange, message, pair)

    if isinstance(exc, ccxt.BadSymbol):
        return PairNotListedError(exchange, message, pair)

    # ExchangeNotAvailable, other NetworkErrors and remaining ExchangeErrors
    return TransientVenueError(exchange, message, pair)


def is_access_block(message: str) -> bool:
    """Check if an error message reports a geographic or firewall block."""
    return ACCESS_BLOCK_PATTERN.search(message) is not None


class CcxtGateway:
    """
    Market data access through ccxt async clients.

    Every public method raises only VenueError subclasses.
    """

    def __init__(self, registry: ExchangeRegistry) -> None:
        self._registry = registry

    async def load_markets(self, exchange: str) -> frozenset[str]:
        """
        Get active spot symbols listed on an exchange.

        Raises:
            VenueError: Classified failure.
        """
        try:
            client = self._registry.get(exchange)
            markets: dict[str, Any] = await client.load_markets()
        except Exception as e:
            raise classify_error(e, exchange) from e

        return frozenset(
            symbol
            for symbol, market in (markets or {}).items()
            if market.get("active") is not False and market.get("spot", True)
        )

    async def fetch_order_book(self, exchange: str, pair: str, depth: int) -> RawOrderBook:
        """
        Fetch and normalize an order book.

        Raises:
            VenueError: Classified failure, DATA_ANOMALY for malformed payloads.
        """
        try:
            client = self._registry.get(exchange)
            raw = await client.fetch_order_book(pair, limit=depth)
        except Exception as e:
            raise classify_error(e, exchange, pair) from e

        try:
            return OrderBookData.model_validate(raw).to_raw()
        except ValidationError as e:
            raise VenueError(
                exchange,
                f"malformed order book: {e.error_count()} errors",
                pair,
                kind=FailureKind.DATA_ANOMALY,
            ) from e

    async def fetch_currency_status(self, exchange: str) -> dict[str, VenueHealth]:
        """
        Get transfer health per currency.

        Returns an empty mapping when the exchange does not expose
        currency metadata.

        Raises:
            VenueError: Classified failure.
        """
        try:
            client = self._registry.get(exchange)
            if not client.has.get("fetchCurrencies"):
                return {}
            currencies: dict[str, Any] = await client.fetch_currencies()
        except Exception as e:
            raise classify_error(e, exchange) from e

        health: dict[str, VenueHealth] = {}
        for code, payload in (currencies or {}).items():
            try:
                currency = CurrencyData.model_validate({"code": code, **(payload or {})})
            except ValidationError:
                logger.debug(f"{exchange}: skipping malformed currency entry {code}")
                continue
            health[code.upper()] = currency.to_health()
        return health

    async def close(self) -> None:
        """Close all underlying clients."""
        await self._registry.close_all()
