"""Lightweight in-memory event bus.

Domain events such as leech promotions are handed to subscribers here; the
engine never knows how (or whether) they are delivered to the learner.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)


class DomainEvent:
    """Base class for all domain events.

    All domain events inherit from this class and get an event_id and an
    occurred_at timestamp.

    Note: This is not a dataclass to avoid issues with inheritance
    when child classes have required fields.
    """

    def __init__(self, event_id: str = "", occurred_at: datetime | None = None):
        """Initialize domain event with auto-generated ID and timestamp.

        Args:
            event_id: Unique event identifier (auto-generated if empty)
            occurred_at: Event timestamp (auto-generated if None)
        """
        self.event_id = event_id or str(uuid4())
        self.occurred_at = occurred_at or datetime.now(UTC)

    def __str__(self) -> str:
        """Return string representation of the event."""
        return f"{self.__class__.__name__}(event_id={self.event_id})"

    @property
    def event_name(self) -> str:
        """Return the name of this event type."""
        return self.__class__.__name__


class EventBus:
    """Async event bus for domain event publishing.

    Handlers may be sync or async. A failing handler is logged and does not
    affect the other handlers or the publisher. Nothing is persisted.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[Callable[..., Any]]] = {}

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all handlers registered for its type.

        Args:
            event: Domain event to publish
        """
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(f"No handlers registered for {event_type.__name__}")
            return

        logger.debug(f"Publishing {event_type.__name__} to {len(handlers)} handlers")

        await asyncio.gather(
            *[self._handle_event(handler, event) for handler in handlers],
            return_exceptions=True,
        )

    async def _handle_event(
        self, handler: Callable[..., Any], event: DomainEvent
    ) -> None:
        """Handle individual event with error isolation.

        Args:
            handler: Event handler function (sync or async)
            event: Domain event to handle
        """
        try:
            if inspect.iscoroutinefunction(handler):
                await handler(event)
            else:
                handler(event)
        except Exception as e:
            handler_name = getattr(handler, "__name__", str(handler))
            logger.error(
                f"Event handler {handler_name} failed for "
                f"{type(event).__name__}: {e}"
            )

    def subscribe(
        self, event_type: type[DomainEvent], handler: Callable[..., Any]
    ) -> None:
        """Subscribe handler to event type.

        Args:
            event_type: Type of domain event to subscribe to
            handler: Handler function (sync or async)
        """
        self._handlers.setdefault(event_type, []).append(handler)
        handler_name = getattr(handler, "__name__", str(handler))
        logger.debug(f"Subscribed {handler_name} to {event_type.__name__}")

    def unsubscribe(
        self, event_type: type[DomainEvent], handler: Callable[..., Any]
    ) -> None:
        """Unsubscribe handler from event type.

        Args:
            event_type: Type of domain event to unsubscribe from
            handler: Handler function to remove
        """
        handler_name = getattr(handler, "__name__", str(handler))
        try:
            self._handlers.get(event_type, []).remove(handler)
            logger.debug(f"Unsubscribed {handler_name} from {event_type.__name__}")
        except ValueError:
            logger.warning(
                f"Handler {handler_name} not found for {event_type.__name__}"
            )

    def get_handler_count(self, event_type: type[DomainEvent]) -> int:
        """Get number of handlers for specific event type."""
        return len(self._handlers.get(event_type, []))

    def clear_subscriptions(self) -> None:
        """Clear all event subscriptions."""
        self._handlers.clear()
        logger.debug("Cleared all event subscriptions")
