"""ReviewCard domain service.

Grading one card is a single transaction: compute the next scheduling state,
run leech detection over it, persist the card with a review log entry, count
a graduating new card against the deck's daily quota and announce the result.
"""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass
from datetime import date, datetime

from ankizen.domain.analytics.events.analytics_events import LeechDetectedEvent
from ankizen.domain.analytics.services.detect_leech import LeechDetector
from ankizen.domain.learning.events.card_events import CardReviewedEvent
from ankizen.domain.learning.models.learning_models import (
    Card,
    Deck,
    ReviewLog,
    ScheduleIntervals,
)
from ankizen.domain.learning.services.manage_deck_progress import (
    record_new_card_introduced,
)
from ankizen.domain.learning.services.schedule_card import next_state
from ankizen.domain.shared.clock import Clock
from ankizen.domain.shared.models import Grade
from ankizen.domain.shared.services import DomainService, log_domain_operation
from ankizen.infrastructure.messaging.event_bus import EventBus
from ankizen.infrastructure.repositories.study_repository import StudyRepository


@dataclass
class ReviewCardRequest:
    """Request DTO for grading a card."""

    card_id: str
    grade: Grade

    def __post_init__(self) -> None:
        """Validate request data."""
        if not self.card_id:
            raise ValueError("card_id must not be empty")
        self.grade = Grade.parse(self.grade)


@dataclass
class ReviewCardResult:
    """Result DTO for a grading."""

    success: bool
    card_id: str
    card: Card | None = None
    deck: Deck | None = None
    review_log: ReviewLog | None = None
    graduated: bool = False
    leech_promoted: bool = False
    error_message: str | None = None


@dataclass(frozen=True)
class GradingOutcome:
    """Entity values produced by grading one card."""

    card: Card
    deck: Deck
    review_log: ReviewLog
    graduated: bool
    leech_promoted: bool


def grade_card(
    card: Card,
    deck: Deck,
    grade: Grade,
    today: date,
    now: datetime,
    leech_detector: LeechDetector | None = None,
) -> GradingOutcome:
    """Apply one grading to a card and its deck without touching storage.

    Args:
        card: Card before grading
        deck: Card's deck, supplying base intervals and the quota window
        grade: Grade given
        today: Current day
        now: Current instant for timestamps
        leech_detector: Detector to apply; default thresholds when omitted

    Returns:
        Updated card and deck, the review log entry and what happened
    """
    detector = leech_detector or LeechDetector()

    candidate = next_state(card, grade, today, ScheduleIntervals.from_deck(deck))
    evaluation = detector.evaluate(card, grade, candidate, today)
    state = evaluation.state

    updated_card = card.model_copy(
        update={
            "due_date": state.due_date,
            "interval": state.interval,
            "ease_factor": state.ease_factor,
            "repetitions": state.repetitions,
            "again_count": evaluation.again_count,
            "consecutive_again_count": evaluation.consecutive_again_count,
            "is_leech": evaluation.is_leech,
            "tags": evaluation.tags,
            "updated_at": now,
        }
    )

    graduated = card.repetitions == 0 and grade is not Grade.AGAIN
    updated_deck = record_new_card_introduced(deck, today, now) if graduated else deck

    review_log = ReviewLog(
        card_id=card.id, deck_id=card.deck_id, timestamp=now, grade=grade
    )

    return GradingOutcome(
        card=updated_card,
        deck=updated_deck,
        review_log=review_log,
        graduated=graduated,
        leech_promoted=evaluation.promoted,
    )


class ReviewCard(DomainService[ReviewCardRequest, ReviewCardResult]):
    """Domain service grading a single card.

    Gradings within one deck are serialized: the card and the deck's quota
    window are read, updated and written under a per-deck lock, and the
    current day is read once per grading.
    """

    def __init__(
        self,
        repository: StudyRepository,
        clock: Clock,
        event_bus: EventBus,
        leech_detector: LeechDetector | None = None,
    ) -> None:
        """Initialize ReviewCard service.

        Args:
            repository: Storage for cards, decks and review logs
            clock: Source of the current day
            event_bus: Event bus for publishing domain events
            leech_detector: Leech thresholds to apply
        """
        super().__init__(event_bus)
        self.repository = repository
        self.clock = clock
        self.leech_detector = leech_detector or LeechDetector()
        self._deck_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, deck_id: str) -> asyncio.Lock:
        # Locks live only while a grading holds or awaits them
        lock = self._deck_locks.get(deck_id)
        if lock is None:
            lock = asyncio.Lock()
            self._deck_locks[deck_id] = lock
        return lock

    @log_domain_operation
    async def call(self, request: ReviewCardRequest) -> ReviewCardResult:
        """Grade a card and persist the outcome.

        Args:
            request: Card to grade and the grade given

        Returns:
            Result with the updated card and deck, or success=False when the
            card or its deck cannot be found
        """
        card = self.repository.get_card(request.card_id)
        if card is None:
            return self._not_found(request, f"Card {request.card_id} not found")

        async with self._lock_for(card.deck_id):
            card = self.repository.get_card(request.card_id)
            if card is None:
                return self._not_found(request, f"Card {request.card_id} not found")
            deck = self.repository.get_deck(card.deck_id)
            if deck is None:
                return self._not_found(request, f"Deck {card.deck_id} not found")

            now = self.clock.now()
            outcome = grade_card(
                card, deck, request.grade, now.date(), now, self.leech_detector
            )

            with self.repository.transaction():
                self.repository.put_card(outcome.card)
                self.repository.add_review_log(outcome.review_log)
                if outcome.graduated:
                    self.repository.put_deck(outcome.deck)

        self.logger.info(
            f"Graded card {card.id} {request.grade.value}: "
            f"next review in {outcome.card.interval} days"
        )

        await self._publish_event(
            CardReviewedEvent(
                card_id=outcome.card.id,
                deck_id=outcome.card.deck_id,
                grade=request.grade.value,
                interval=outcome.card.interval,
                ease_factor=outcome.card.ease_factor,
                repetitions=outcome.card.repetitions,
                due_date=outcome.card.due_date,
                graduated=outcome.graduated,
            )
        )
        if outcome.leech_promoted:
            self.logger.warning(f"Card {card.id} ({card.front!r}) became a leech")
            await self._publish_event(
                LeechDetectedEvent(
                    card_id=outcome.card.id,
                    deck_id=outcome.card.deck_id,
                    front=outcome.card.front,
                    again_count=outcome.card.again_count,
                    consecutive_again_count=outcome.card.consecutive_again_count,
                )
            )

        return ReviewCardResult(
            success=True,
            card_id=outcome.card.id,
            card=outcome.card,
            deck=outcome.deck,
            review_log=outcome.review_log,
            graduated=outcome.graduated,
            leech_promoted=outcome.leech_promoted,
        )

    def _not_found(self, request: ReviewCardRequest, message: str) -> ReviewCardResult:
        self.logger.error(message)
        return ReviewCardResult(
            success=False, card_id=request.card_id, error_message=message
        )
