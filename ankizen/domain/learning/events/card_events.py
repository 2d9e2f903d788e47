"""Learning Context specific domain events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ankizen.infrastructure.messaging.event_bus import DomainEvent


@dataclass
class CardReviewedEvent(DomainEvent):
    """Event emitted when a card has been graded and rescheduled."""

    card_id: str
    deck_id: str
    grade: str  # "again", "hard", "good" or "easy"
    interval: int
    ease_factor: float
    repetitions: int
    due_date: date
    graduated: bool = False  # Card left the "new" state with this grading

    def __post_init__(self) -> None:
        """Initialize parent DomainEvent fields."""
        super().__init__()


@dataclass
class DeckProgressResetEvent(DomainEvent):
    """Event emitted when a deck's scheduling progress is reset."""

    deck_id: str
    cards_reset: int
    review_logs_deleted: int

    def __post_init__(self) -> None:
        """Initialize parent DomainEvent fields."""
        super().__init__()


@dataclass
class DeckMasteredEvent(DomainEvent):
    """Event emitted when every card of a deck is forced into a mature state."""

    deck_id: str
    cards_mastered: int

    def __post_init__(self) -> None:
        """Initialize parent DomainEvent fields."""
        super().__init__()


@dataclass
class DecksMergedEvent(DomainEvent):
    """Event emitted when source decks are merged into a target deck."""

    target_deck_id: str
    source_deck_ids: list[str]
    cards_moved: int

    def __post_init__(self) -> None:
        """Initialize parent DomainEvent fields."""
        super().__init__()
