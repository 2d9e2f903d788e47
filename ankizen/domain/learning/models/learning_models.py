"""Learning and spaced repetition domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ankizen.domain.shared.models import Grade

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
LEECH_TAG = "leech"


def _new_id() -> str:
    return str(uuid4())


class Card(BaseModel):
    """One learnable item and its scheduling state."""

    id: str = Field(default_factory=_new_id, description="Unique card ID")
    deck_id: str = Field(..., description="Owning deck ID")

    # Content
    front: str = Field(..., description="Word or phrase being learned")
    reading: str = Field("", description="Pronunciation or reading aid")
    translation: str = Field("", description="Meaning in the learner's language")
    notes: str | None = Field(None, description="Free-form user notes")
    tags: list[str] = Field(default_factory=list, description="Unique tags")

    # Scheduling
    due_date: date = Field(..., description="Day the card is next due")
    interval: int = Field(0, ge=0, description="Days until next review")
    ease_factor: float = Field(DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    repetitions: int = Field(
        0, ge=0, description="Successful recalls since last lapse or creation"
    )

    # Failure tracking
    again_count: int = Field(0, ge=0, description="Lifetime 'again' grades")
    consecutive_again_count: int = Field(0, ge=0)

    # Lifecycle flags
    is_leech: bool = False
    is_suspended: bool = False
    buried_until: date | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        """Drop blank and duplicate tags, keeping first-seen order."""
        seen: dict[str, None] = {}
        for tag in v:
            tag = tag.strip()
            if tag:
                seen.setdefault(tag, None)
        return list(seen)

    @property
    def is_new(self) -> bool:
        """Whether the card has never been successfully reviewed."""
        return self.interval == 0 and self.repetitions == 0

    def is_buried_on(self, day: date) -> bool:
        """Whether the card is hidden by a bury on the given day."""
        return self.buried_until is not None and self.buried_until >= day


class Deck(BaseModel):
    """A collection of cards plus its scheduling configuration."""

    id: str = Field(default_factory=_new_id, description="Unique deck ID")
    name: str = Field(..., description="Display name")

    # Daily caps
    new_cards_per_day: int = Field(20, description="Max new cards per day")
    max_reviews_per_day: int = Field(
        200, description="Max cards (new + due) in one day's queue"
    )

    # Base intervals in days
    initial_good_interval: int = 3
    initial_easy_interval: int = 5
    lapse_again_interval: int = 1

    # Quota window
    daily_new_cards_introduced: int = Field(0, ge=0)
    last_session_date: date | None = None

    created_at: datetime
    updated_at: datetime

    def new_cards_introduced_on(self, day: date) -> int:
        """New cards graduated on the given day; a stale window counts as zero."""
        if self.last_session_date != day:
            return 0
        return self.daily_new_cards_introduced


class ReviewLog(BaseModel):
    """Immutable ledger entry written for every grading."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    card_id: str
    deck_id: str
    timestamp: datetime
    grade: Grade


@dataclass(frozen=True)
class ScheduleIntervals:
    """Configurable base intervals for first success and lapse."""

    good: int = 3
    easy: int = 5
    lapse_again: int = 1

    @classmethod
    def from_deck(cls, deck: Deck) -> ScheduleIntervals:
        return cls(
            good=deck.initial_good_interval,
            easy=deck.initial_easy_interval,
            lapse_again=deck.lapse_again_interval,
        )


@dataclass(frozen=True)
class SchedulingState:
    """Scheduling fields produced by grading a card."""

    due_date: date
    interval: int
    ease_factor: float
    repetitions: int


def create_card(
    deck_id: str,
    front: str,
    reading: str,
    translation: str,
    now: datetime,
    notes: str | None = None,
    tags: list[str] | None = None,
) -> Card:
    """Build a new card that is due immediately."""
    return Card(
        deck_id=deck_id,
        front=front,
        reading=reading,
        translation=translation,
        notes=notes,
        tags=tags or [],
        due_date=now.date(),
        interval=0,
        ease_factor=DEFAULT_EASE_FACTOR,
        repetitions=0,
        created_at=now,
        updated_at=now,
    )
