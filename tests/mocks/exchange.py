"""
Fake exchange access for testing.

Provides an in-memory gateway implementing the ExchangeGateway protocol
and a stand-in for a ccxt async client, both without network calls.
"""

import asyncio
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from crossarb.core.types import (
    OrderBookLevel,
    OrderBookSnapshot,
    RawOrderBook,
    VenueHealth,
    WalletStatus,
)


Levels = Iterable[tuple[str | int | float | Decimal, str | int | float | Decimal]]

HEALTHY = VenueHealth(WalletStatus.OK, frozenset({"TRC20", "ERC20"}))


def make_levels(levels: Levels) -> tuple[OrderBookLevel, ...]:
    """Build order book levels from (price, size) rows."""
    return tuple(OrderBookLevel(Decimal(str(price)), Decimal(str(size))) for price, size in levels)


def make_book(bids: Levels, asks: Levels, timestamp_ms: int = 1704067200000) -> RawOrderBook:
    """Build a gateway order book."""
    return RawOrderBook(bids=make_levels(bids), asks=make_levels(asks), timestamp_ms=timestamp_ms)


def make_snapshot(
    exchange: str,
    bids: Levels,
    asks: Levels,
    pair: str = "BTC/USDT",
    health: VenueHealth = HEALTHY,
    cycle_id: int = 1,
) -> OrderBookSnapshot:
    """Build a snapshot for evaluator tests."""
    return OrderBookSnapshot(
        exchange=exchange,
        pair=pair,
        bids=make_levels(bids),
        asks=make_levels(asks),
        captured_at_ms=1704067200000,
        health=health,
        cycle_id=cycle_id,
    )


class FakeGateway:
    """
    Scriptable in-memory gateway.

    Order books, listings and currency status are set per exchange.
    Errors and latency can be injected per operation, and every call is
    recorded for assertions.
    """

    def __init__(self, latency_s: float = 0.0) -> None:
        """
        Initialize fake gateway.

        Args:
            latency_s: Simulated delay applied to every call.
        """
        self.books: dict[tuple[str, str], RawOrderBook] = {}
        self.markets: dict[str, set[str]] = {}
        self.currencies: dict[str, dict[str, VenueHealth]] = {}
        self.errors: dict[tuple[str, str], BaseException] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, ...]] = []
        self.closed = False
        self._latency_s = latency_s

    def add_book(
        self,
        exchange: str,
        pair: str,
        bids: Levels,
        asks: Levels,
        health: VenueHealth | None = HEALTHY,
    ) -> None:
        """List a pair on an exchange with the given book and base-asset health."""
        self.books[(exchange, pair)] = make_book(bids, asks)
        self.markets.setdefault(exchange, set()).add(pair)
        if health is not None:
            base = pair.split("/")[0]
            self.currencies.setdefault(exchange, {})[base] = health

    def fail(self, exchange: str, error: BaseException, operation: str = "load_markets") -> None:
        """
        Make an operation raise.

        Args:
            exchange: Exchange id.
            error: Exception to raise.
            operation: "load_markets", "currency_status" or a pair symbol.
        """
        self.errors[(exchange, operation)] = error

    def calls_for(self, operation: str) -> list[tuple[str, ...]]:
        """Recorded calls of one operation."""
        return [call for call in self.calls if call[0] == operation]

    async def _simulate(self, exchange: str, operation: str) -> None:
        delay = self.delays.get(exchange, self._latency_s)
        if delay:
            await asyncio.sleep(delay)
        error = self.errors.get((exchange, operation))
        if error is not None:
            raise error

    async def load_markets(self, exchange: str) -> frozenset[str]:
        self.calls.append(("load_markets", exchange))
        await self._simulate(exchange, "load_markets")
        return frozenset(self.markets.get(exchange, set()))

    async def fetch_order_book(self, exchange: str, pair: str, depth: int) -> RawOrderBook:
        self.calls.append(("fetch_order_book", exchange, pair))
        await self._simulate(exchange, pair)
        return self.books[(exchange, pair)]

    async def fetch_currency_status(self, exchange: str) -> dict[str, VenueHealth]:
        self.calls.append(("fetch_currency_status", exchange))
        await self._simulate(exchange, "currency_status")
        return dict(self.currencies.get(exchange, {}))

    async def close(self) -> None:
        self.closed = True


class FakeCcxtClient:
    """
    Stand-in for a ccxt async exchange client.

    Returns canned payloads shaped like ccxt's unified responses.
    """

    def __init__(
        self,
        markets: dict[str, dict[str, Any]] | None = None,
        order_book: dict[str, Any] | None = None,
        currencies: dict[str, dict[str, Any]] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.markets = markets or {}
        self.order_book = order_book or {"bids": [], "asks": []}
        self.currencies = currencies
        self.error = error
        self.has = {"fetchCurrencies": currencies is not None}
        self.closed = False
        self.order_book_calls: list[tuple[str, int | None]] = []

    async def load_markets(self) -> dict[str, dict[str, Any]]:
        if self.error is not None:
            raise self.error
        return self.markets

    async def fetch_order_book(self, symbol: str, limit: int | None = None) -> dict[str, Any]:
        self.order_book_calls.append((symbol, limit))
        if self.error is not None:
            raise self.error
        return self.order_book

    async def fetch_currencies(self) -> dict[str, dict[str, Any]]:
        if self.error is not None:
            raise self.error
        return self.currencies or {}

    async def close(self) -> None:
        self.closed = True
