"""Domain Service base classes following DDD patterns.

Each domain service encapsulates a single business operation behind an async
`call` method and announces what happened through the event bus. The
scheduling arithmetic itself lives in plain functions so it stays pure; the
services only orchestrate loading, computing, persisting and publishing.
"""

from __future__ import annotations

import functools
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ankizen.infrastructure.messaging.event_bus import EventBus

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Request type
U = TypeVar("U")  # Response type


class DomainService(ABC, Generic[T, U]):
    """Base class for all domain services.

    Services use Verb + Noun naming (e.g. ReviewCard) and expose a single
    `call` method as their primary operation.
    """

    def __init__(self, event_bus: EventBus) -> None:
        """Initialize domain service with event bus.

        Args:
            event_bus: Event bus for publishing domain events
        """
        self.event_bus = event_bus
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def call(self, request: T) -> U:
        """Single entry point for domain service execution.

        Args:
            request: Typed request object containing all necessary data

        Returns:
            Typed response object with operation results
        """
        pass

    async def _publish_event(self, event: Any) -> None:
        """Publish a domain event, logging rather than raising on failure.

        Args:
            event: Domain event to publish
        """
        try:
            await self.event_bus.publish(event)
        except Exception as e:
            self.logger.error(f"Failed to publish event {type(event).__name__}: {e}")


class DomainServiceError(Exception):
    """Base exception for domain service errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize domain service error.

        Args:
            message: Human-readable error message
            error_code: Optional machine-readable error code
        """
        super().__init__(message)
        self.error_code = error_code


class ValidationError(DomainServiceError):
    """Raised when request data does not meet the required constraints."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message
            field: Optional field name that failed validation
        """
        super().__init__(message, "VALIDATION_ERROR")
        self.field = field


class BusinessRuleViolationError(DomainServiceError):
    """Raised when an operation would violate a domain rule."""

    def __init__(self, message: str, rule: str | None = None) -> None:
        """Initialize business rule violation error.

        Args:
            message: Human-readable error message
            rule: Optional name of the violated business rule
        """
        super().__init__(message, "BUSINESS_RULE_VIOLATION")
        self.rule = rule


class EntityNotFoundError(DomainServiceError):
    """Raised when a deck or card identifier does not resolve."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found", "NOT_FOUND")
        self.entity = entity
        self.entity_id = entity_id


def log_domain_operation(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to log domain service operations.

    Logs the start and completion of domain service calls with their duration.
    """

    @functools.wraps(func)
    async def wrapper(self: Any, request: Any) -> Any:
        operation_name = f"{self.__class__.__name__}.call"
        self.logger.debug(f"Starting {operation_name}")

        start_time = time.perf_counter()
        try:
            result = await func(self, request)
            duration = time.perf_counter() - start_time
            self.logger.debug(f"Completed {operation_name} in {duration:.3f}s")
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            self.logger.error(f"Failed {operation_name} after {duration:.3f}s: {e}")
            raise

    return wrapper
