"""
Exchange client registry.

Holds one ccxt client per exchange id for the lifetime of the process.
Clients are expensive to build (market metadata, HTTP session) so they
are created on first use and then shared by every scan.
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

import ccxt.async_support as ccxt

from crossarb.config.settings import ExchangeCredentials
from crossarb.core.errors import VenueAuthError


logger = logging.getLogger(__name__)


ClientFactory = Callable[[str], Any]


def ccxt_factory(
    credentials: Mapping[str, ExchangeCredentials] | None = None,
    timeout_ms: int = 10_000,
) -> ClientFactory:
    """
    Build a factory creating ccxt async clients.

    Args:
        credentials: Credentials keyed by exchange id. Exchanges without
            an entry get a public, unauthenticated client.
        timeout_ms: HTTP timeout passed to ccxt.

    Returns:
        Callable mapping an exchange id to a client.
    """
    credentials = {name.lower(): creds for name, creds in (credentials or {}).items()}

    def create(exchange: str) -> Any:
        exchange_class = getattr(ccxt, exchange, None)
        if exchange_class is None:
            raise VenueAuthError(exchange, f"Unknown exchange id '{exchange}'")

        config: dict[str, Any] = {
            "enableRateLimit": True,
            "timeout": timeout_ms,
            "options": {"defaultType": "spot"},
        }
        creds = credentials.get(exchange)
        if creds is not None:
            config["apiKey"] = creds.api_key.get_secret_value()
            config["secret"] = creds.secret.get_secret_value()
            if creds.password is not None:
                config["password"] = creds.password.get_secret_value()

        logger.debug(f"Created ccxt client for {exchange} (authenticated={creds is not None})")
        return exchange_class(config)

    return create


class ExchangeRegistry:
    """
    Thread-safe cache of exchange clients.

    Entries are inserted once and never replaced, so a client handed out
    to one task stays valid for every other task.
    """

    def __init__(self, factory: ClientFactory) -> None:
        """
        Initialize registry.

        Args:
            factory: Callable creating a client for an exchange id.
        """
        self._factory = factory
        self._clients: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, exchange: str) -> Any:
        """
        Get the client for an exchange, creating it on first use.

        Raises:
            VenueAuthError: If the factory cannot build a client for the id.
        """
        with self._lock:
            client = self._clients.get(exchange)
            if client is None:
                client = self._factory(exchange)
                self._clients[exchange] = client
            return client

    def __contains__(self, exchange: str) -> bool:
        with self._lock:
            return exchange in self._clients

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def exchanges(self) -> list[str]:
        """Exchange ids with a live client."""
        with self._lock:
            return sorted(self._clients)

    async def close_all(self) -> None:
        """Close every client session."""
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()

        results = await asyncio.gather(
            *(client.close() for _, client in clients),
            return_exceptions=True,
        )
        for (name, _), result in zip(clients, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(f"Error closing {name} client: {result}")
