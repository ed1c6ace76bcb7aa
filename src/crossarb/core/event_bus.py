"""
Internal event bus for decoupled communication.

The scan engine publishes cycle progress and venue failures here;
notifiers, the trade log and metrics subscribe without the engine
knowing about them. Handler failures are logged and never reach the
publisher.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from crossarb.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)


class EventType(Enum):
    """System event types."""

    # Scan lifecycle
    SCAN_STARTED = auto()
    SNAPSHOTS_COLLECTED = auto()
    SCAN_COMPLETE = auto()

    # Results
    OPPORTUNITY_FOUND = auto()

    # Venue health
    VENUE_FAILURE = auto()

    # System
    SHUTDOWN = auto()


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp_us: int = field(default_factory=get_timestamp_us)
    source: str = ""


EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Async event bus for internal messaging.

    Features:
    - Async and sync handler support
    - Priority-based handler ordering
    - Error isolation per handler
    - Fire-and-forget emission for slow sinks such as notifications
    """

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed.
        """
        for i, (_, ah) in enumerate(self._handlers[event_type]):
            if ah == handler:
                self._handlers[event_type].pop(i)
                return True

        for i, (_, sh) in enumerate(self._sync_handlers[event_type]):
            if sh == handler:
                self._sync_handlers[event_type].pop(i)
                return True

        return False

    async def publish(self, event: Event[Any]) -> None:
        """
        Publish an event and wait for every subscriber.

        Args:
            event: Event to publish.
        """
        self._run_sync_handlers(event)

        for _, async_handler in self._handlers[event.type]:
            await self._safe_call(async_handler, event)

    def emit(self, event: Event[Any]) -> None:
        """
        Publish an event without waiting for async subscribers.

        Sync handlers run immediately. Async handlers run in a background
        task tracked by the bus so `drain()` can await them.
        Must be called from within a running event loop.
        """
        self._run_sync_handlers(event)

        handlers = [handler for _, handler in self._handlers[event.type]]
        if not handlers:
            return

        task = asyncio.create_task(self._dispatch(handlers, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for all emitted events to finish delivery."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _dispatch(self, handlers: list[EventHandler], event: Event[Any]) -> None:
        await asyncio.gather(*(self._safe_call(handler, event) for handler in handlers))

    def _run_sync_handlers(self, event: Event[Any]) -> None:
        for _, sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type}: {e}")

    async def _safe_call(self, handler: EventHandler, event: Event[Any]) -> None:
        """Safely call a handler with error isolation."""
        try:
            await handler(event)
        except Exception as e:
            logger.error(f"Handler error for {event.type}: {e}")

    @property
    def pending_count(self) -> int:
        """Number of emitted events still being delivered."""
        return len(self._pending)
