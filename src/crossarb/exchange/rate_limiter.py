"""
Per-exchange request throttling.

Combines a concurrency bound (how many requests may be in flight against
one exchange) with token-bucket pacing (how many may start per second).
Each exchange gets its own throttle so a slow venue never starves others.
"""

import asyncio
import time
from dataclasses import dataclass, field
from types import TracebackType

from crossarb.config.constants import DEFAULT_MAX_IN_FLIGHT, DEFAULT_REQUESTS_PER_SECOND


@dataclass
class TokenBucket:
    """
    Token bucket implementation for rate limiting.

    Tokens are added at a constant rate up to a maximum capacity.
    Each request consumes one or more tokens.
    """

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float = field(init=False)
    last_refill: float = field(init=False)  # monotonic seconds
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize with full bucket."""
        self.tokens = float(self.capacity)
        self.last_refill = time.monotonic()

    def _refill(self) -> None:
        """Add tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    async def acquire(self, tokens: int = 1) -> None:
        """
        Acquire tokens, waiting if necessary.

        Args:
            tokens: Number of tokens to acquire.
        """
        async with self._lock:
            self._refill()

            if self.tokens < tokens:
                wait_seconds = (tokens - self.tokens) / self.refill_rate
                await asyncio.sleep(wait_seconds)
                self._refill()

            self.tokens -= tokens


class ExchangeThrottle:
    """
    Concurrency bound plus request pacing for one exchange.

    Usage:
        async with throttle:
            await gateway.fetch_order_book(...)
    """

    def __init__(
        self,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND,
    ) -> None:
        """
        Initialize throttle.

        Args:
            max_in_flight: Maximum concurrent requests.
            requests_per_second: Sustained request rate. Burst capacity is the same value.
        """
        self._semaphore = asyncio.Semaphore(max_in_flight)
        self._bucket = TokenBucket(
            capacity=requests_per_second,
            refill_rate=float(requests_per_second),
        )
        self._max_in_flight = max_in_flight
        self._in_flight = 0

    async def __aenter__(self) -> "ExchangeThrottle":
        await self._semaphore.acquire()
        try:
            await self._bucket.acquire(1)
        except BaseException:
            self._semaphore.release()
            raise
        self._in_flight += 1
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._in_flight -= 1
        self._semaphore.release()

    @property
    def in_flight(self) -> int:
        """Requests currently holding a slot."""
        return self._in_flight

    @property
    def max_in_flight(self) -> int:
        return self._max_in_flight


class ThrottlePool:
    """Lazily created throttles keyed by exchange id."""

    def __init__(
        self,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND,
    ) -> None:
        self._max_in_flight = max_in_flight
        self._requests_per_second = requests_per_second
        self._throttles: dict[str, ExchangeThrottle] = {}

    def get(self, exchange: str) -> ExchangeThrottle:
        """Get the throttle for an exchange, creating it on first use."""
        throttle = self._throttles.get(exchange)
        if throttle is None:
            throttle = ExchangeThrottle(self._max_in_flight, self._requests_per_second)
            self._throttles[exchange] = throttle
        return throttle

    def __contains__(self, exchange: str) -> bool:
        return exchange in self._throttles
