"""Tests for EventBus infrastructure component."""

from __future__ import annotations

from dataclasses import dataclass
from unittest.mock import AsyncMock, Mock

import pytest

from ankizen.domain.analytics.events.analytics_events import LeechDetectedEvent
from ankizen.infrastructure.messaging.event_bus import DomainEvent, EventBus


@dataclass
class SampleEvent(DomainEvent):
    """Event used only in these tests."""

    message: str

    def __post_init__(self) -> None:
        super().__init__()


class TestEventBus:
    """Test EventBus functionality."""

    @pytest.mark.asyncio
    async def test_publish_with_no_handlers(self, event_bus: EventBus) -> None:
        # Should not raise any exceptions
        await event_bus.publish(SampleEvent(message="hello"))

    @pytest.mark.asyncio
    async def test_async_and_sync_handlers(self, event_bus: EventBus) -> None:
        async_handler = AsyncMock()
        sync_handler = Mock()
        event = SampleEvent(message="hello")

        event_bus.subscribe(SampleEvent, async_handler)
        event_bus.subscribe(SampleEvent, sync_handler)
        await event_bus.publish(event)

        async_handler.assert_called_once_with(event)
        sync_handler.assert_called_once_with(event)

    @pytest.mark.asyncio
    async def test_handlers_only_receive_their_event_type(
        self, event_bus: EventBus
    ) -> None:
        handler = Mock()
        event_bus.subscribe(LeechDetectedEvent, handler)

        await event_bus.publish(SampleEvent(message="hello"))

        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self, event_bus: EventBus) -> None:
        failing = Mock(side_effect=RuntimeError("handler failed"))
        healthy = AsyncMock()
        event = SampleEvent(message="hello")

        event_bus.subscribe(SampleEvent, failing)
        event_bus.subscribe(SampleEvent, healthy)
        await event_bus.publish(event)

        healthy.assert_called_once_with(event)

    def test_subscribe_and_unsubscribe(self, event_bus: EventBus) -> None:
        handler = Mock()

        event_bus.subscribe(SampleEvent, handler)
        assert event_bus.get_handler_count(SampleEvent) == 1

        event_bus.unsubscribe(SampleEvent, handler)
        assert event_bus.get_handler_count(SampleEvent) == 0

    def test_unsubscribe_unknown_handler(self, event_bus: EventBus) -> None:
        # Should only log a warning
        event_bus.unsubscribe(SampleEvent, Mock())

    def test_clear_subscriptions(self, event_bus: EventBus) -> None:
        event_bus.subscribe(SampleEvent, Mock())
        event_bus.subscribe(LeechDetectedEvent, Mock())

        event_bus.clear_subscriptions()

        assert event_bus.get_handler_count(SampleEvent) == 0
        assert event_bus.get_handler_count(LeechDetectedEvent) == 0


class TestDomainEvent:
    def test_event_gets_id_and_timestamp(self) -> None:
        event = LeechDetectedEvent(
            card_id="card-1",
            deck_id="deck-1",
            front="猫",
            again_count=8,
            consecutive_again_count=2,
        )

        assert event.event_id
        assert event.occurred_at is not None
        assert event.event_name == "LeechDetectedEvent"
        assert str(event) == f"LeechDetectedEvent(event_id={event.event_id})"

    def test_event_ids_are_unique(self) -> None:
        assert SampleEvent(message="a").event_id != SampleEvent(message="b").event_id
