"""
Unit tests for EventBus.

Tests subscription, priority ordering, error isolation and background delivery.
"""

import pytest

from crossarb.core.event_bus import Event, EventBus, EventType


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_publish_reaches_async_and_sync_handlers(self, event_bus: EventBus) -> None:
        """Test both handler kinds receive published events."""
        received: list[str] = []

        async def async_handler(event: Event[str]) -> None:
            received.append(f"async:{event.payload}")

        def sync_handler(event: Event[str]) -> None:
            received.append(f"sync:{event.payload}")

        event_bus.subscribe(EventType.SCAN_COMPLETE, async_handler)
        event_bus.subscribe_sync(EventType.SCAN_COMPLETE, sync_handler)

        await event_bus.publish(Event(EventType.SCAN_COMPLETE, payload="done"))

        assert received == ["sync:done", "async:done"]

    @pytest.mark.asyncio
    async def test_priority_order(self, event_bus: EventBus) -> None:
        """Test higher priority handlers run first."""
        order: list[int] = []

        async def low(event: Event[None]) -> None:
            order.append(0)

        async def high(event: Event[None]) -> None:
            order.append(10)

        event_bus.subscribe(EventType.SCAN_STARTED, low)
        event_bus.subscribe(EventType.SCAN_STARTED, high, priority=10)

        await event_bus.publish(Event(EventType.SCAN_STARTED, payload=None))

        assert order == [10, 0]

    @pytest.mark.asyncio
    async def test_handler_errors_are_isolated(self, event_bus: EventBus) -> None:
        """Test a failing handler does not stop the others."""
        received: list[int] = []

        async def broken(event: Event[int]) -> None:
            raise RuntimeError("boom")

        async def healthy(event: Event[int]) -> None:
            received.append(event.payload)

        event_bus.subscribe(EventType.VENUE_FAILURE, broken, priority=1)
        event_bus.subscribe(EventType.VENUE_FAILURE, healthy)

        await event_bus.publish(Event(EventType.VENUE_FAILURE, payload=42))

        assert received == [42]

    @pytest.mark.asyncio
    async def test_emit_delivers_in_background(self, event_bus: EventBus) -> None:
        """Test emitted events are delivered after drain."""
        received: list[str] = []

        async def handler(event: Event[str]) -> None:
            received.append(event.payload)

        event_bus.subscribe(EventType.OPPORTUNITY_FOUND, handler)

        event_bus.emit(Event(EventType.OPPORTUNITY_FOUND, payload="opp"))
        assert event_bus.pending_count == 1

        await event_bus.drain()

        assert received == ["opp"]
        assert event_bus.pending_count == 0

    @pytest.mark.asyncio
    async def test_unsubscribe(self, event_bus: EventBus) -> None:
        """Test removed handlers no longer receive events."""
        received: list[str] = []

        async def handler(event: Event[None]) -> None:
            received.append("async")

        def sync_handler(event: Event[None]) -> None:
            received.append("sync")

        event_bus.subscribe(EventType.SCAN_STARTED, handler)
        event_bus.subscribe_sync(EventType.SCAN_STARTED, sync_handler)

        assert event_bus.unsubscribe(EventType.SCAN_STARTED, handler) is True
        assert event_bus.unsubscribe(EventType.SCAN_STARTED, handler) is False
        assert event_bus.unsubscribe(EventType.SCAN_STARTED, sync_handler) is True
        await event_bus.publish(Event(EventType.SCAN_STARTED, payload=None))

        assert received == []
