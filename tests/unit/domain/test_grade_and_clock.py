"""Tests for shared domain values: grades, clocks and domain errors."""

from __future__ import annotations

import time
from datetime import UTC, date, datetime, timedelta

import pytest

from ankizen.domain.learning.models.learning_models import Card, create_card
from ankizen.domain.shared.clock import FixedClock, SystemClock
from ankizen.domain.shared.models import Grade
from ankizen.domain.shared.services import (
    BusinessRuleViolationError,
    DomainServiceError,
    EntityNotFoundError,
    ValidationError,
)


@pytest.fixture
def local_timezone(monkeypatch):
    """Switch the process time zone for one test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def set_zone(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield set_zone
    monkeypatch.undo()
    time.tzset()


class TestGrade:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("again", Grade.AGAIN), ("Hard", Grade.HARD), (" GOOD ", Grade.GOOD)],
    )
    def test_parse_strings(self, value: str, expected: Grade) -> None:
        assert Grade.parse(value) is expected

    def test_parse_grade_instance(self) -> None:
        assert Grade.parse(Grade.EASY) is Grade.EASY

    @pytest.mark.parametrize("value", ["perfect", "", 3, None])
    def test_parse_rejects_unknown_values(self, value) -> None:
        with pytest.raises(ValueError, match="Unknown grade"):
            Grade.parse(value)


class TestClock:
    def test_fixed_clock(self) -> None:
        clock = FixedClock(datetime(2024, 3, 31, 23, 59, tzinfo=UTC))

        assert clock.today() == date(2024, 3, 31)

        clock.advance(minutes=2)
        assert clock.today() == date(2024, 4, 1)

        clock.advance(days=1)
        assert clock.today() == date(2024, 4, 2)

    def test_naive_time_is_treated_as_utc(self) -> None:
        clock = FixedClock(datetime(2024, 1, 1, 12, 0))

        assert clock.now().tzinfo is UTC

    def test_system_clock_uses_local_day(self, local_timezone) -> None:
        """Far from UTC the local calendar day decides what is due."""
        local_timezone("Pacific/Kiritimati")
        clock = SystemClock()

        assert clock.today() == date.today()
        assert clock.now().utcoffset() == timedelta(seconds=-time.timezone)
        assert abs(clock.now() - datetime.now(UTC)) < timedelta(seconds=5)


class TestCard:
    def test_create_card_is_new_and_due_now(self, now) -> None:
        card = create_card("deck-1", "食べる", "たべる", "to eat", now, tags=["verbs"])

        assert card.is_new
        assert card.due_date == now.date()
        assert card.ease_factor == 2.5
        assert card.created_at == card.updated_at == now

    def test_tags_are_unique_and_ordered(self, now) -> None:
        card = create_card("deck-1", "猫", "", "", now, tags=["n5", " animals ", "n5", ""])

        assert card.tags == ["n5", "animals"]

    def test_ease_floor_enforced_on_construction(self, now) -> None:
        with pytest.raises(ValueError):
            Card(
                deck_id="deck-1",
                front="猫",
                due_date=now.date(),
                ease_factor=1.0,
                created_at=now,
                updated_at=now,
            )


class TestDomainErrors:
    def test_error_codes(self) -> None:
        assert ValidationError("bad", "name").error_code == "VALIDATION_ERROR"
        assert (
            BusinessRuleViolationError("no", "rule").error_code
            == "BUSINESS_RULE_VIOLATION"
        )
        assert EntityNotFoundError("Card", "c1").error_code == "NOT_FOUND"

    def test_all_errors_share_a_base(self) -> None:
        error = EntityNotFoundError("Deck", "d1")

        assert isinstance(error, DomainServiceError)
        assert error.entity == "Deck"
        assert error.entity_id == "d1"
