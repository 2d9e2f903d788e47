"""Spaced-repetition scheduling core for the ankizen flashcard trainer."""

from ankizen.application_services.study.study_service import StudyService
from ankizen.domain.analytics.events.analytics_events import LeechDetectedEvent
from ankizen.domain.analytics.services.detect_leech import (
    LeechDetector,
    LeechEvaluation,
)
from ankizen.domain.learning.events.card_events import (
    CardReviewedEvent,
    DeckMasteredEvent,
    DeckProgressResetEvent,
    DecksMergedEvent,
)
from ankizen.domain.learning.models.learning_models import (
    Card,
    Deck,
    ReviewLog,
    ScheduleIntervals,
    SchedulingState,
    create_card,
)
from ankizen.domain.learning.services.manage_deck_progress import (
    bury_until_tomorrow,
    mark_as_mastered,
    record_new_card_introduced,
    reset_progress,
    suspend,
    unsuspend,
)
from ankizen.domain.learning.services.review_card import (
    ReviewCard,
    ReviewCardRequest,
    ReviewCardResult,
    grade_card,
)
from ankizen.domain.learning.services.schedule_card import next_state
from ankizen.domain.learning.services.select_due_cards import (
    StudyQueue,
    select_custom_study,
    select_queue,
)
from ankizen.domain.shared.clock import Clock, FixedClock, SystemClock
from ankizen.domain.shared.models import Grade
from ankizen.domain.shared.services import (
    BusinessRuleViolationError,
    DomainServiceError,
    EntityNotFoundError,
    ValidationError,
)
from ankizen.infrastructure.messaging.event_bus import DomainEvent, EventBus
from ankizen.infrastructure.repositories.study_repository import (
    InMemoryStudyRepository,
    StudyRepository,
)

__all__ = [
    # Entities
    "Card",
    "Deck",
    "ReviewLog",
    "Grade",
    "ScheduleIntervals",
    "SchedulingState",
    "create_card",
    # Scheduling
    "next_state",
    "LeechDetector",
    "LeechEvaluation",
    "StudyQueue",
    "select_queue",
    "select_custom_study",
    # Lifecycle
    "reset_progress",
    "mark_as_mastered",
    "suspend",
    "unsuspend",
    "bury_until_tomorrow",
    "record_new_card_introduced",
    # Grading
    "ReviewCard",
    "ReviewCardRequest",
    "ReviewCardResult",
    "grade_card",
    # Services and infrastructure
    "StudyService",
    "StudyRepository",
    "InMemoryStudyRepository",
    "Clock",
    "SystemClock",
    "FixedClock",
    "EventBus",
    "DomainEvent",
    # Events
    "CardReviewedEvent",
    "LeechDetectedEvent",
    "DeckProgressResetEvent",
    "DeckMasteredEvent",
    "DecksMergedEvent",
    # Errors
    "DomainServiceError",
    "ValidationError",
    "BusinessRuleViolationError",
    "EntityNotFoundError",
]
