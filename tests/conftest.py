"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ankizen.domain.learning.models.learning_models import Card, Deck  # noqa: E402
from ankizen.domain.shared.clock import FixedClock  # noqa: E402
from ankizen.infrastructure.config.settings import Settings  # noqa: E402
from ankizen.infrastructure.messaging.event_bus import EventBus  # noqa: E402
from ankizen.infrastructure.repositories.study_repository import (  # noqa: E402
    InMemoryStudyRepository,
)

NOW = datetime(2024, 6, 10, 9, 30, tzinfo=UTC)
TODAY = NOW.date()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def repository() -> InMemoryStudyRepository:
    return InMemoryStudyRepository()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, ignoring the environment and .env."""
    return Settings(_env_file=None)


@pytest.fixture
def make_deck() -> Callable[..., Deck]:
    """Build a deck with default configuration."""

    def factory(**overrides: Any) -> Deck:
        values: dict[str, Any] = {
            "id": "deck-1",
            "name": "Japanese N5",
            "created_at": NOW - timedelta(days=30),
            "updated_at": NOW - timedelta(days=30),
        }
        values.update(overrides)
        return Deck(**values)

    return factory


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """Build a card; new and due today unless overridden."""
    counter = iter(range(1, 10_000))

    def factory(**overrides: Any) -> Card:
        n = next(counter)
        values: dict[str, Any] = {
            "id": f"card-{n}",
            "deck_id": "deck-1",
            "front": f"word {n}",
            "reading": f"reading {n}",
            "translation": f"meaning {n}",
            "due_date": TODAY,
            "created_at": NOW - timedelta(days=10) + timedelta(minutes=n),
            "updated_at": NOW - timedelta(days=10) + timedelta(minutes=n),
        }
        values.update(overrides)
        return Card(**values)

    return factory
