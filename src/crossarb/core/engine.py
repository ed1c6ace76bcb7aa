"""
Scan engine orchestrator.

Ties market data aggregation to opportunity evaluation for one cycle,
selects which venues to scan, enforces the request-level deadline and
runs the polling monitor loop with graceful shutdown.
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from crossarb.config.constants import MIN_VENUES
from crossarb.config.settings import BotSettings, BotSettingsUpdate, Settings
from crossarb.core.errors import CrossArbError, ScanTimeoutError
from crossarb.core.event_bus import Event, EventBus, EventType
from crossarb.core.types import (
    ExchangeGateway,
    ExchangeProfile,
    Opportunity,
    TradeIntent,
    VenueFailure,
)
from crossarb.exchange.gateway import CcxtGateway
from crossarb.exchange.rate_limiter import ThrottlePool
from crossarb.exchange.registry import ExchangeRegistry, ccxt_factory
from crossarb.market.aggregator import MarketDataAggregator
from crossarb.market.catalog import MarketCatalog
from crossarb.notify.telegram import TelegramNotifier
from crossarb.strategy.evaluator import OpportunityEvaluator, sort_by_profit
from crossarb.strategy.fees import FeeModel
from crossarb.strategy.risk import RiskScorer, RiskScorerConfig, is_acceptable
from crossarb.telemetry.metrics import MetricsCollector
from crossarb.telemetry.reporter import ScanReporter, status_line
from crossarb.utils.time import LatencyTimer, get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Outcome of one complete scan."""

    cycle_id: int
    intent: TradeIntent
    opportunities: tuple[Opportunity, ...]
    exchanges: tuple[str, ...]
    failures: tuple[VenueFailure, ...] = ()
    excluded_exchanges: frozenset[str] = frozenset()
    duration_us: int = 0
    completed_at_ms: int = field(default_factory=get_timestamp_ms)

    @property
    def available(self) -> list[Opportunity]:
        """Opportunities clearing the profit threshold."""
        return [o for o in self.opportunities if o.is_available]

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "completed_at_ms": self.completed_at_ms,
            "duration_us": self.duration_us,
            "exchanges": list(self.exchanges),
            "excluded_exchanges": sorted(self.excluded_exchanges),
            "failures": [f.to_dict() for f in self.failures],
            "opportunities": [o.to_dict() for o in self.opportunities],
        }


class ScanEngine:
    """
    Monitor orchestrator.

    Manages the lifecycle of:
    - Exchange clients and throttles
    - Market data aggregation and evaluation
    - Notification wiring
    - Telemetry and reporting
    """

    def __init__(
        self,
        settings: Settings,
        gateway: ExchangeGateway | None = None,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            gateway: Exchange access. Defaults to a ccxt gateway built from settings.
            event_bus: Shared event bus.
            metrics: Shared metrics collector.
        """
        self._settings = settings
        self._event_bus = event_bus or EventBus()
        self._metrics = metrics or MetricsCollector()
        self._gateway: ExchangeGateway = gateway or CcxtGateway(
            ExchangeRegistry(
                ccxt_factory(
                    settings.exchange_credentials,
                    timeout_ms=int(settings.fetch_timeout_s * 1000),
                )
            )
        )

        self._aggregator = MarketDataAggregator(
            gateway=self._gateway,
            catalog=MarketCatalog(ttl_s=settings.markets_cache_ttl_s),
            throttles=ThrottlePool(
                max_in_flight=settings.max_in_flight_per_exchange,
                requests_per_second=settings.requests_per_second,
            ),
            event_bus=self._event_bus,
            metrics=self._metrics,
            order_book_depth=settings.order_book_depth,
            fetch_timeout_s=settings.fetch_timeout_s,
            metadata_timeout_s=settings.metadata_timeout_s,
            assume_healthy_when_unknown=settings.assume_healthy_when_unknown,
            fallback_networks=settings.fallback_networks,
            credentialed_exchanges=settings.credentialed_exchanges,
        )
        self._evaluator = OpportunityEvaluator(
            fee_model=FeeModel(
                default_maker_fee=settings.default_maker_fee,
                default_taker_fee=settings.default_taker_fee,
                default_withdrawal_fee_quote=settings.default_withdrawal_fee_quote,
            ),
            risk_scorer=RiskScorer(RiskScorerConfig.from_settings(settings)),
            preferred_networks=settings.preferred_networks,
        )
        self._profiles: dict[str, ExchangeProfile] = settings.exchange_profiles()
        self._bot_settings: BotSettings = settings.bot_settings()

        self._notifier: TelegramNotifier | None = None
        self._reporter: ScanReporter | None = None
        self._last_result: ScanResult | None = None
        self._running = False
        self._closed = False
        self._shutdown_event = asyncio.Event()

    async def setup(self) -> None:
        """Wire optional collaborators."""
        if self._settings.telegram_enabled:
            self._notifier = TelegramNotifier(
                bot_token=self._settings.telegram_bot_token.get_secret_value(),  # type: ignore[union-attr]
                chat_id=self._settings.telegram_chat_id,  # type: ignore[arg-type]
            )
            self._notifier.attach(self._event_bus)
            logger.info("Telegram alerts enabled for high-severity venue failures")

        self._event_bus.subscribe_sync(EventType.OPPORTUNITY_FOUND, self._log_opportunity)

        exchanges = self.select_exchanges()
        logger.info(
            f"Monitoring {len(self._settings.watch_pairs)} pairs on {len(exchanges)} exchanges: "
            f"{', '.join(exchanges)}"
        )

    def select_exchanges(self) -> list[str]:
        """
        Get the venues to scan.

        Falls back to the configured major public exchanges, keeping any
        credentialed ones, when fewer than two venues have credentials.
        """
        exchanges = self._settings.scan_exchanges()
        credentialed = self._settings.credentialed_exchanges
        if len(credentialed) < MIN_VENUES:
            logger.debug(
                f"{len(credentialed)} credentialed exchange(s), "
                f"using public venues: {', '.join(exchanges)}"
            )
        return exchanges

    def trade_intent(
        self,
        pair: str | None = None,
        trade_amount_quote: Decimal | None = None,
        min_profit_percentage: Decimal | None = None,
    ) -> TradeIntent:
        """
        Build a TradeIntent from the current bot settings.

        Explicit arguments override the stored trade amount and threshold.

        Raises:
            IntentValidationError: If a parameter is out of range.
        """
        bot = self._bot_settings
        return self._settings.trade_intent(
            pair=pair,
            trade_amount_quote=(
                trade_amount_quote if trade_amount_quote is not None else bot.trade_amount_quote
            ),
            min_profit_percentage=(
                min_profit_percentage
                if min_profit_percentage is not None
                else bot.min_profit_percentage
            ),
        )

    def update_bot_settings(self, update: BotSettingsUpdate) -> BotSettings:
        """Apply a partial settings update. Takes effect from the next scan."""
        self._bot_settings = self._bot_settings.apply(update)
        changed = ", ".join(sorted(update.model_dump(exclude_none=True))) or "nothing"
        logger.info(f"Bot settings updated: {changed}")
        return self._bot_settings

    def platforms(self) -> list[dict[str, Any]]:
        """Known exchanges with their credential and scan state."""
        credentialed = set(self._settings.credentialed_exchanges)
        scanned = set(self.select_exchanges())
        names = sorted(set(self._settings.major_exchanges) | credentialed)
        return [
            {
                "id": name,
                "credentialed": name in credentialed,
                "scanned": name in scanned,
                "has_fee_profile": name in self._profiles,
            }
            for name in names
        ]

    def _log_opportunity(self, event: Event[Opportunity]) -> None:
        opportunity = event.payload
        logger.info(
            f"Opportunity {opportunity.pair}: buy {opportunity.buy_exchange} "
            f"sell {opportunity.sell_exchange} net {opportunity.net_profit_pct:.4f}% "
            f"risk {opportunity.risk_score}"
        )

    async def scan(self, intent: TradeIntent | None = None) -> ScanResult:
        """
        Run one complete scan under the request deadline.

        Args:
            intent: Trade parameters. Defaults to the configured ones.

        Returns:
            ScanResult with opportunities sorted by net profit.

        Raises:
            IntentValidationError: Malformed intent (raised while building it).
            SnapshotMismatchError: Snapshots from different cycles were mixed.
            NoVenuesAvailableError: No exchange could be reached.
            ScanTimeoutError: The scan exceeded `scan_timeout_s`.
        """
        intent = intent or self.trade_intent()
        timeout = self._settings.scan_timeout_s

        try:
            # wait_for cancels the in-flight fetches and discards partial results
            result = await asyncio.wait_for(self._scan_once(intent), timeout)
        except asyncio.TimeoutError as e:
            self._metrics.record_scan_failure(timed_out=True)
            logger.warning(f"Scan timed out after {timeout:.1f}s")
            raise ScanTimeoutError(timeout) from e
        except CrossArbError:
            self._metrics.record_scan_failure()
            raise

        self._last_result = result
        return result

    async def _scan_once(self, intent: TradeIntent) -> ScanResult:
        exchanges = self.select_exchanges()
        pairs = [intent.pair] if intent.pair else list(self._settings.watch_pairs)

        self._event_bus.emit(Event(EventType.SCAN_STARTED, payload=intent, source="engine"))

        with LatencyTimer() as timer:
            snapshot_set = await self._aggregator.fetch_snapshots(exchanges, pairs)
            await self._event_bus.publish(
                Event(EventType.SNAPSHOTS_COLLECTED, payload=snapshot_set, source="engine")
            )
            opportunities = sort_by_profit(
                self._evaluator.evaluate(pairs, snapshot_set.snapshots, self._profiles, intent)
            )

        result = ScanResult(
            cycle_id=snapshot_set.cycle_id,
            intent=intent,
            opportunities=tuple(opportunities),
            exchanges=tuple(exchanges),
            failures=snapshot_set.failures,
            excluded_exchanges=snapshot_set.excluded_exchanges,
            duration_us=timer.latency_us,
        )

        self._metrics.record_scan(result.cycle_id, result.opportunities, result.duration_us)

        for opportunity in result.available:
            if is_acceptable(opportunity.recommendation_tier, self._bot_settings.risk_level):
                self._event_bus.emit(
                    Event(EventType.OPPORTUNITY_FOUND, payload=opportunity, source="engine")
                )

        self._event_bus.emit(Event(EventType.SCAN_COMPLETE, payload=result, source="engine"))
        return result

    async def run(self) -> None:
        """Run the polling monitor loop until a shutdown signal arrives."""
        self._running = True
        self._reporter = ScanReporter(self._metrics)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        logger.info(f"Starting monitor loop (refresh every {self._bot_settings.refresh_rate_sec}s)")

        try:
            while not self._shutdown_event.is_set():
                try:
                    result = await self.scan()
                except CrossArbError as e:
                    logger.error(f"Scan failed: {e}")
                else:
                    self._reporter.display(
                        result.opportunities,
                        exchanges=result.exchanges,
                        failures=result.failures,
                    )
                    logger.debug(status_line(self._metrics))

                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=self._bot_settings.refresh_rate_sec,
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self.stop()

    def stop(self) -> None:
        """Ask the monitor loop to exit after the current cycle."""
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Gracefully shut down the engine. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down scan engine...")

        self.stop()
        await self._event_bus.publish(Event(EventType.SHUTDOWN, payload=None, source="engine"))
        await self._event_bus.drain()

        if self._reporter:
            self._reporter.print_summary()

        if self._notifier:
            self._notifier.detach(self._event_bus)
            await self._notifier.close()

        await self._gateway.close()
        logger.info("Scan engine shutdown complete")

    def status(self) -> dict[str, Any]:
        """Snapshot of engine state for the status endpoint."""
        last = self._last_result
        return {
            "running": self._running,
            "exchanges": self.select_exchanges(),
            "credentialed_exchanges": self._settings.credentialed_exchanges,
            "pairs": list(self._settings.watch_pairs),
            "bot_settings": self._bot_settings.to_dict(),
            "last_cycle_id": last.cycle_id if last else None,
            "last_scan_at_ms": last.completed_at_ms if last else None,
            "last_failures": [f.to_dict() for f in last.failures] if last else [],
            "metrics": self._metrics.to_dict(),
        }

    @property
    def is_running(self) -> bool:
        """Check if the monitor loop is running."""
        return self._running

    @property
    def last_result(self) -> ScanResult | None:
        return self._last_result

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def bot_settings(self) -> BotSettings:
        return self._bot_settings

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics


@asynccontextmanager
async def create_engine(
    settings: Settings,
    gateway: ExchangeGateway | None = None,
) -> AsyncIterator[ScanEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.run()
    """
    engine = ScanEngine(settings, gateway=gateway)

    try:
        await engine.setup()
        yield engine
    finally:
        await engine.shutdown()


__all__: Sequence[str] = ("ScanEngine", "ScanResult", "create_engine")
