"""
Listed-pair catalog.

Caches which pairs each exchange lists so the aggregator can skip
order-book requests that would only fail with an unknown symbol.
Listings change rarely, so entries live for a configurable TTL.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from crossarb.config.constants import MARKETS_CACHE_TTL


logger = logging.getLogger(__name__)


def split_pair(pair: str) -> tuple[str, str]:
    """
    Split a unified symbol into base and quote.

    Example:
        >>> split_pair("BTC/USDT")
        ('BTC', 'USDT')
        >>> split_pair("BTC/USDT:USDT")
        ('BTC', 'USDT')
    """
    base, _, quote = pair.partition("/")
    return base, quote.split(":", 1)[0]


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    """Listed pairs of one exchange."""

    pairs: frozenset[str]
    loaded_at: float  # monotonic seconds


class MarketCatalog:
    """
    Per-exchange listed-pair cache with TTL.

    Responsibilities:
    - Loading listings once per TTL window per exchange
    - Answering listed/unlisted questions without network calls
    - Filtering a pair list down to what an exchange can quote
    """

    __slots__ = ("_ttl", "_entries", "_locks")

    def __init__(self, ttl_s: float = MARKETS_CACHE_TTL) -> None:
        """
        Initialize empty catalog.

        Args:
            ttl_s: Seconds before a listing is reloaded. 0 disables caching.
        """
        self._ttl = ttl_s
        self._entries: dict[str, CatalogEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, exchange: str) -> frozenset[str] | None:
        """Get cached listings if still fresh."""
        entry = self._entries.get(exchange)
        if entry is None:
            return None
        if time.monotonic() - entry.loaded_at > self._ttl:
            return None
        return entry.pairs

    def update(self, exchange: str, pairs: Iterable[str]) -> None:
        """Replace the listings of an exchange."""
        self._entries[exchange] = CatalogEntry(frozenset(pairs), time.monotonic())

    def invalidate(self, exchange: str | None = None) -> None:
        """
        Drop cached listings.

        Args:
            exchange: Exchange to drop, or None for all.
        """
        if exchange is None:
            self._entries.clear()
        else:
            self._entries.pop(exchange, None)

    async def ensure(
        self,
        exchange: str,
        loader: Callable[[], Awaitable[frozenset[str]]],
    ) -> frozenset[str]:
        """
        Get listings, loading them if missing or stale.

        Concurrent callers for the same exchange share a single load.

        Args:
            exchange: Exchange id.
            loader: Coroutine factory returning the listed pairs.

        Returns:
            Listed pairs.
        """
        cached = self.get(exchange)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(exchange, asyncio.Lock())
        async with lock:
            cached = self.get(exchange)
            if cached is not None:
                return cached

            pairs = await loader()
            self.update(exchange, pairs)
            logger.debug(f"{exchange}: cached {len(pairs)} listed pairs")
            return pairs

    def is_listed(self, exchange: str, pair: str) -> bool:
        """Check a pair against cached listings. Unknown exchanges list nothing."""
        entry = self._entries.get(exchange)
        return entry is not None and pair in entry.pairs

    def listed_pairs(self, exchange: str, pairs: Iterable[str]) -> list[str]:
        """Filter pairs to those the exchange lists."""
        return [pair for pair in pairs if self.is_listed(exchange, pair)]

    def __len__(self) -> int:
        return len(self._entries)
