"""
Concurrent market data aggregation.

Fans out one task per exchange and, inside each, one order-book fetch per
listed pair. Every network call carries its own timeout and every exchange
has its own throttle, so a slow or failing venue never holds back the
others. Failures are classified and contained here: the caller receives a
SnapshotSet with whatever succeeded plus a structured failure list.
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from crossarb.config.constants import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_METADATA_TIMEOUT,
    ORDER_BOOK_DEPTH,
)
from crossarb.core.errors import (
    FailureKind,
    NoVenuesAvailableError,
    TransientVenueError,
    VenueError,
)
from crossarb.core.event_bus import Event, EventBus, EventType
from crossarb.core.types import (
    ExchangeGateway,
    OrderBookSnapshot,
    SnapshotSet,
    VenueFailure,
    VenueHealth,
    WalletStatus,
)
from crossarb.exchange.rate_limiter import ThrottlePool
from crossarb.market.catalog import MarketCatalog, split_pair
from crossarb.telemetry.metrics import MetricsCollector
from crossarb.utils.time import LatencyTimer, get_timestamp_ms


logger = logging.getLogger(__name__)


# Failures that remove an exchange from the rest of the cycle
EXCLUDING_KINDS = frozenset({FailureKind.AUTH, FailureKind.ACCESS_BLOCKED})

T = TypeVar("T")


@dataclass
class _ExchangeResult:
    """Outcome of one exchange task."""

    exchange: str
    snapshots: dict[tuple[str, str], OrderBookSnapshot] = field(default_factory=dict)
    failures: list[VenueFailure] = field(default_factory=list)
    reached: bool = False
    excluded: bool = False


class MarketDataAggregator:
    """
    Collects one cycle of order-book snapshots across exchanges.

    Features:
    - One independent task per exchange, one per listed pair
    - Per-exchange concurrency bound and request pacing
    - Listed-pair cache to skip unknown symbols
    - Failure classification with escalation of credential problems
    """

    def __init__(
        self,
        gateway: ExchangeGateway,
        catalog: MarketCatalog | None = None,
        throttles: ThrottlePool | None = None,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        order_book_depth: int = ORDER_BOOK_DEPTH,
        fetch_timeout_s: float = DEFAULT_FETCH_TIMEOUT,
        metadata_timeout_s: float = DEFAULT_METADATA_TIMEOUT,
        assume_healthy_when_unknown: bool = False,
        fallback_networks: Iterable[str] = ("ERC20",),
        credentialed_exchanges: Iterable[str] = (),
    ) -> None:
        """
        Initialize aggregator.

        Args:
            gateway: Exchange access.
            catalog: Listed-pair cache (created if omitted).
            throttles: Per-exchange throttles (created if omitted).
            event_bus: Bus for VENUE_FAILURE events.
            metrics: Optional metrics sink for fetch latencies.
            order_book_depth: Levels requested per side.
            fetch_timeout_s: Timeout per order-book fetch.
            metadata_timeout_s: Timeout for listing and currency status calls.
            assume_healthy_when_unknown: Treat missing currency status as healthy.
            fallback_networks: Networks assumed in that case, and for open
                currencies that report no network breakdown.
            credentialed_exchanges: Exchanges whose private endpoints are
                expected to work. Auth failures on currency status only
                escalate for these.
        """
        self._gateway = gateway
        self._catalog = catalog or MarketCatalog()
        self._throttles = throttles or ThrottlePool()
        self._event_bus = event_bus
        self._metrics = metrics
        self._depth = order_book_depth
        self._fetch_timeout = fetch_timeout_s
        self._metadata_timeout = metadata_timeout_s
        self._assume_healthy = assume_healthy_when_unknown
        self._fallback_networks = frozenset(n.upper() for n in fallback_networks)
        self._credentialed = frozenset(credentialed_exchanges)
        self._cycle_id = 0

    @property
    def last_cycle_id(self) -> int:
        """Id of the most recently started cycle."""
        return self._cycle_id

    @property
    def catalog(self) -> MarketCatalog:
        return self._catalog

    async def fetch_snapshots(
        self,
        exchanges: Iterable[str],
        pairs: Iterable[str],
    ) -> SnapshotSet:
        """
        Collect order books for every listed (exchange, pair).

        Args:
            exchanges: Exchange ids to query.
            pairs: Unified symbols to fetch.

        Returns:
            SnapshotSet stamped with a new cycle id.

        Raises:
            NoVenuesAvailableError: If no exchange could be reached.
        """
        self._cycle_id += 1
        cycle_id = self._cycle_id
        started_at = get_timestamp_ms()

        exchange_list = sorted(set(exchanges))
        pair_list = sorted(set(pairs))

        if not exchange_list:
            raise NoVenuesAvailableError("No exchanges configured")

        results = await asyncio.gather(
            *(self._fetch_exchange(exchange, pair_list, cycle_id) for exchange in exchange_list),
            return_exceptions=True,
        )

        snapshots: dict[tuple[str, str], OrderBookSnapshot] = {}
        failures: list[VenueFailure] = []
        excluded: set[str] = set()
        reached = 0

        for exchange, result in zip(exchange_list, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                # Exchange tasks classify their own errors, anything here is a bug
                logger.error(f"{exchange}: unexpected error during fetch: {result!r}")
                failures.append(
                    VenueFailure(exchange=exchange, kind=FailureKind.TRANSIENT, message=str(result))
                )
                continue

            failures.extend(result.failures)
            if result.excluded:
                excluded.add(exchange)
                continue
            if result.reached:
                reached += 1
            snapshots.update(result.snapshots)

        if reached == 0:
            raise NoVenuesAvailableError(
                f"No exchange reachable in cycle {cycle_id} "
                f"({len(failures)} failures across {len(exchange_list)} exchanges)"
            )

        logger.debug(
            f"Cycle {cycle_id}: {len(snapshots)} snapshots from {reached} exchanges, "
            f"{len(failures)} failures, excluded={sorted(excluded)}"
        )

        return SnapshotSet(
            cycle_id=cycle_id,
            started_at_ms=started_at,
            snapshots=snapshots,
            failures=tuple(failures),
            excluded_exchanges=frozenset(excluded),
        )

    # =========================================================================
    # Per-exchange work
    # =========================================================================

    async def _fetch_exchange(
        self,
        exchange: str,
        pairs: Sequence[str],
        cycle_id: int,
    ) -> _ExchangeResult:
        result = _ExchangeResult(exchange=exchange)

        try:
            await self._catalog.ensure(
                exchange,
                lambda: self._with_timeout(
                    self._gateway.load_markets(exchange),
                    self._metadata_timeout,
                    exchange,
                ),
            )
        except VenueError as e:
            self._record_failure(result, e)
            return result

        result.reached = True
        health_by_asset = await self._currency_status(exchange, result)
        if result.excluded:
            return result

        targets = self._catalog.listed_pairs(exchange, pairs)
        if len(targets) < len(pairs):
            skipped = sorted(set(pairs) - set(targets))
            logger.debug(f"{exchange}: {', '.join(skipped)} not listed, skipping")

        if not self._assume_healthy:
            self._report_unknown_health(exchange, targets, health_by_asset, result)

        fetched = await asyncio.gather(
            *(self._fetch_pair(exchange, pair, cycle_id, health_by_asset) for pair in targets),
            return_exceptions=True,
        )

        for pair, outcome in zip(targets, fetched, strict=True):
            if isinstance(outcome, OrderBookSnapshot):
                result.snapshots[(exchange, pair)] = outcome
                continue
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            error = outcome if isinstance(outcome, VenueError) else TransientVenueError(
                exchange, str(outcome) or type(outcome).__name__, pair
            )
            self._record_failure(result, error)

        if result.excluded:
            result.snapshots.clear()

        return result

    async def _currency_status(
        self,
        exchange: str,
        result: _ExchangeResult,
    ) -> dict[str, VenueHealth] | None:
        """Fetch currency status, returning None when it is unavailable."""
        try:
            return await self._with_timeout(
                self._gateway.fetch_currency_status(exchange),
                self._metadata_timeout,
                exchange,
            )
        except VenueError as e:
            if e.kind == FailureKind.AUTH and exchange not in self._credentialed:
                # Public clients cannot read private currency endpoints
                logger.debug(f"{exchange}: currency status needs credentials, health unknown")
                return None
            self._record_failure(result, e)
            return None

    async def _fetch_pair(
        self,
        exchange: str,
        pair: str,
        cycle_id: int,
        health_by_asset: dict[str, VenueHealth] | None,
    ) -> OrderBookSnapshot:
        async with self._throttles.get(exchange):
            with LatencyTimer() as timer:
                book = await self._with_timeout(
                    self._gateway.fetch_order_book(exchange, pair, self._depth),
                    self._fetch_timeout,
                    exchange,
                    pair,
                )

        if self._metrics is not None:
            self._metrics.record_latency(f"fetch.{exchange}", timer.latency_us)

        return OrderBookSnapshot(
            exchange=exchange,
            pair=pair,
            bids=book.bids,
            asks=book.asks,
            captured_at_ms=book.timestamp_ms,
            health=self._health_for(pair, health_by_asset),
            cycle_id=cycle_id,
        )

    def _health_for(
        self,
        pair: str,
        health_by_asset: dict[str, VenueHealth] | None,
    ) -> VenueHealth:
        base, _ = split_pair(pair)
        if health_by_asset is not None and base in health_by_asset:
            return health_by_asset[base].with_fallback_networks(self._fallback_networks)
        if self._assume_healthy:
            return VenueHealth(WalletStatus.OK, self._fallback_networks)
        return VenueHealth.unknown()

    def _report_unknown_health(
        self,
        exchange: str,
        pairs: Sequence[str],
        health_by_asset: dict[str, VenueHealth] | None,
        result: _ExchangeResult,
    ) -> None:
        """Record one failure naming the assets whose transfer health is unknown."""
        if result.failures:
            # Currency status failure already reported
            return
        missing = sorted(
            {
                split_pair(pair)[0]
                for pair in pairs
                if health_by_asset is None or split_pair(pair)[0] not in health_by_asset
            }
        )
        if not missing:
            return

        failure = VenueFailure(
            exchange=exchange,
            kind=FailureKind.DATA_ANOMALY,
            message=(
                f"currency status unavailable for {', '.join(missing)}, "
                f"treated as maintenance"
            ),
        )
        result.failures.append(failure)
        logger.warning(
            f"{exchange}: {failure.message} "
            f"(set assume_healthy_when_unknown to scan public venues anyway)"
        )
        if self._metrics is not None:
            self._metrics.record_venue_failure(exchange, failure.kind)
        if self._event_bus is not None:
            self._event_bus.emit(
                Event(type=EventType.VENUE_FAILURE, payload=failure, source="aggregator")
            )

    async def _with_timeout(
        self,
        awaitable: Awaitable[T],
        timeout_s: float,
        exchange: str,
        pair: str | None = None,
    ) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout_s)
        except asyncio.TimeoutError as e:
            raise TransientVenueError(exchange, f"timed out after {timeout_s:.1f}s", pair) from e

    # =========================================================================
    # Failure handling
    # =========================================================================

    def _record_failure(self, result: _ExchangeResult, error: VenueError) -> None:
        failure = VenueFailure.from_error(error)
        result.failures.append(failure)

        if error.kind in EXCLUDING_KINDS:
            result.excluded = True

        if error.kind == FailureKind.AUTH:
            logger.error(f"{error} - excluding {error.exchange} from this cycle")
        elif error.kind == FailureKind.ACCESS_BLOCKED:
            logger.warning(f"{error} - access blocked from this location, excluding")
        elif error.kind == FailureKind.NOT_LISTED:
            self._catalog.invalidate(error.exchange)
            logger.info(f"{error} - listing changed, catalog invalidated")
        else:
            logger.warning(str(error))

        if self._metrics is not None:
            self._metrics.record_venue_failure(error.exchange, error.kind)

        if self._event_bus is not None:
            self._event_bus.emit(
                Event(
                    type=EventType.VENUE_FAILURE,
                    payload=failure,
                    source="aggregator",
                )
            )
