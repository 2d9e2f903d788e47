"""Study application service.

Resolves identifiers through the repository, hands entity values to the
domain functions and writes the results back. This is the surface the CLI
(or any other front end) talks to.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping

from ankizen.domain.analytics.services.deck_statistics import (
    DeckStatistics,
    compute_statistics,
)
from ankizen.domain.analytics.services.detect_leech import LeechDetector
from ankizen.domain.learning.events.card_events import (
    DeckMasteredEvent,
    DeckProgressResetEvent,
    DecksMergedEvent,
)
from ankizen.domain.learning.models.learning_models import Card, Deck, create_card
from ankizen.domain.learning.services.manage_deck_progress import (
    bury_until_tomorrow,
    mark_as_mastered,
    reset_progress,
    suspend,
    unsuspend,
)
from ankizen.domain.learning.services.mastery_test import MasteryTest
from ankizen.domain.learning.services.review_card import (
    ReviewCard,
    ReviewCardRequest,
    ReviewCardResult,
)
from ankizen.domain.learning.services.select_due_cards import (
    StudyQueue,
    select_custom_study,
    select_queue,
)
from ankizen.domain.shared.clock import Clock, SystemClock
from ankizen.domain.shared.models import Grade
from ankizen.domain.shared.services import (
    BusinessRuleViolationError,
    EntityNotFoundError,
    ValidationError,
)
from ankizen.infrastructure.config.settings import Settings, get_settings
from ankizen.infrastructure.messaging.event_bus import DomainEvent, EventBus
from ankizen.infrastructure.repositories.study_repository import StudyRepository

logger = logging.getLogger(__name__)


class StudyService:
    """Deck, card and study-session operations over a StudyRepository."""

    def __init__(
        self,
        repository: StudyRepository,
        clock: Clock | None = None,
        event_bus: EventBus | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize study service.

        Args:
            repository: Storage for cards, decks and review logs
            clock: Source of the current day (local wall clock by default)
            event_bus: Event bus for domain events
            settings: Deck defaults and leech thresholds
        """
        self.repository = repository
        self.clock = clock or SystemClock()
        self.event_bus = event_bus or EventBus()
        self.settings = settings or get_settings()
        self.review_card_service = ReviewCard(
            repository,
            self.clock,
            self.event_bus,
            LeechDetector(
                consecutive_threshold=self.settings.leech_consecutive_threshold,
                total_threshold=self.settings.leech_total_threshold,
                mature_interval=self.settings.leech_mature_interval,
                quarantine_days=self.settings.leech_quarantine_days,
                ease_penalty=self.settings.leech_ease_penalty,
            ),
        )

    # Lookups

    def get_deck(self, deck_id: str) -> Deck:
        deck = self.repository.get_deck(deck_id)
        if deck is None:
            raise EntityNotFoundError("Deck", deck_id)
        return deck

    def get_card(self, card_id: str) -> Card:
        card = self.repository.get_card(card_id)
        if card is None:
            raise EntityNotFoundError("Card", card_id)
        return card

    # Decks and cards

    def create_deck(self, name: str, **config: int) -> Deck:
        """Create an empty deck using configured defaults.

        Args:
            name: Deck name
            **config: Overrides for new_cards_per_day, max_reviews_per_day,
                initial_good_interval, initial_easy_interval or
                lapse_again_interval
        """
        if not name.strip():
            raise ValidationError("Deck name must not be empty", "name")

        now = self.clock.now()
        values = {
            "new_cards_per_day": self.settings.new_cards_per_day,
            "max_reviews_per_day": self.settings.max_reviews_per_day,
            "initial_good_interval": self.settings.initial_good_interval,
            "initial_easy_interval": self.settings.initial_easy_interval,
            "lapse_again_interval": self.settings.lapse_again_interval,
        }
        unknown = set(config) - set(values)
        if unknown:
            raise ValidationError(f"Unknown deck settings: {sorted(unknown)}")
        values.update(config)

        deck = Deck(name=name.strip(), created_at=now, updated_at=now, **values)
        self.repository.put_deck(deck)
        logger.info(f"Created deck {deck.name!r} ({deck.id})")
        return deck

    def rename_deck(self, deck_id: str, name: str) -> Deck:
        if not name.strip():
            raise ValidationError("Deck name must not be empty", "name")
        deck = self.get_deck(deck_id).model_copy(
            update={"name": name.strip(), "updated_at": self.clock.now()}
        )
        self.repository.put_deck(deck)
        return deck

    def delete_deck(self, deck_id: str) -> None:
        self.get_deck(deck_id)
        self.repository.delete_deck(deck_id)

    def add_card(
        self,
        deck_id: str,
        front: str,
        reading: str = "",
        translation: str = "",
        notes: str | None = None,
        tags: Iterable[str] = (),
    ) -> Card:
        """Add a new card to a deck."""
        self.get_deck(deck_id)
        if not front.strip():
            raise ValidationError("Card front must not be empty", "front")

        card = create_card(
            deck_id, front, reading, translation, self.clock.now(), notes, list(tags)
        )
        self.repository.put_card(card)
        return card

    def update_card(
        self,
        card_id: str,
        *,
        front: str | None = None,
        reading: str | None = None,
        translation: str | None = None,
        notes: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> Card:
        """Edit a card's content; fields left as None keep their value.

        Scheduling state is untouched. Tags replace the current tags.

        Raises:
            ValidationError: If the new front is empty
            EntityNotFoundError: If the card does not exist
        """
        card = self.get_card(card_id)
        if front is not None and not front.strip():
            raise ValidationError("Card front must not be empty", "front")

        updates: dict[str, object] = {
            name: value
            for name, value in (
                ("front", front),
                ("reading", reading),
                ("translation", translation),
                ("notes", notes),
            )
            if value is not None
        }
        if tags is not None:
            updates["tags"] = list(tags)
        updates["updated_at"] = self.clock.now()

        # model_copy skips validators; tags must still be deduplicated
        updated = Card.model_validate({**card.model_dump(), **updates})
        self.repository.put_card(updated)
        logger.info(f"Updated card {card_id}: {sorted(set(updates) - {'updated_at'})}")
        return updated

    def delete_card(self, card_id: str) -> None:
        self.get_card(card_id)
        self.repository.delete_card(card_id)

    async def merge_decks(self, source_deck_ids: Iterable[str], target_deck_id: str) -> int:
        """Move all cards of the source decks into the target and delete the sources.

        Returns:
            Number of cards moved

        Raises:
            ValidationError: If no source deck is given
            BusinessRuleViolationError: If the target is one of the sources
        """
        sources = list(dict.fromkeys(source_deck_ids))
        if not sources:
            raise ValidationError("At least one source deck is required", "source_deck_ids")
        if target_deck_id in sources:
            raise BusinessRuleViolationError(
                "Target deck cannot be one of the source decks", "merge_target_not_source"
            )

        self.get_deck(target_deck_id)
        source_decks = [self.get_deck(deck_id) for deck_id in sources]

        now = self.clock.now()
        moved = 0
        with self.repository.transaction():
            for deck in source_decks:
                for card in self.repository.list_cards(deck.id):
                    self.repository.put_card(
                        card.model_copy(update={"deck_id": target_deck_id, "updated_at": now})
                    )
                    moved += 1
                self.repository.move_review_logs(deck.id, target_deck_id)
                self.repository.delete_deck(deck.id)

        logger.info(f"Merged {len(sources)} decks into {target_deck_id}: {moved} cards")
        await self._publish(
            DecksMergedEvent(
                target_deck_id=target_deck_id,
                source_deck_ids=sources,
                cards_moved=moved,
            )
        )
        return moved

    # Studying

    def get_study_queue(self, deck_id: str) -> StudyQueue:
        """Today's study queue for a deck."""
        deck = self.get_deck(deck_id)
        return select_queue(deck, self.repository.list_cards(deck_id), self.clock.today())

    def get_session_cards(
        self, deck_id: str, rng: random.Random | None = None
    ) -> list[Card]:
        """Today's queue in presentation order, shuffled if configured."""
        return self.get_study_queue(deck_id).session_order(
            shuffle=self.settings.shuffle_study_queue, rng=rng
        )

    def get_custom_study_queue(
        self, deck_id: str, tags: Iterable[str] = (), limit: int | None = None
    ) -> list[Card]:
        """Cards for a custom session filtered by tags."""
        deck = self.get_deck(deck_id)
        return select_custom_study(
            deck,
            self.repository.list_cards(deck_id),
            self.clock.today(),
            tags,
            limit if limit is not None else self.settings.custom_study_limit,
        )

    async def review_card(self, card_id: str, grade: Grade | str) -> ReviewCardResult:
        """Grade a card; an unknown grade raises ValueError."""
        return await self.review_card_service.call(ReviewCardRequest(card_id, grade))

    # Lifecycle

    async def reset_deck_progress(self, deck_id: str) -> Deck:
        """Reset every card of the deck to new and purge its review logs."""
        deck = self.get_deck(deck_id)
        now = self.clock.now()

        result = reset_progress(deck, self.repository.list_cards(deck_id), now.date(), now)
        with self.repository.transaction():
            for card in result.cards:
                self.repository.put_card(card)
            self.repository.put_deck(result.deck)
            deleted = self.repository.delete_review_logs_for_deck(deck_id)

        logger.info(
            f"Reset deck {deck_id}: {len(result.cards)} cards, {deleted} review logs deleted"
        )
        await self._publish(
            DeckProgressResetEvent(
                deck_id=deck_id,
                cards_reset=len(result.cards),
                review_logs_deleted=deleted,
            )
        )
        return result.deck

    async def mark_deck_mastered(self, deck_id: str) -> list[Card]:
        """Force every card of the deck into a mature state."""
        deck = self.get_deck(deck_id)
        now = self.clock.now()

        cards = mark_as_mastered(deck, self.repository.list_cards(deck_id), now.date(), now)
        with self.repository.transaction():
            for card in cards:
                self.repository.put_card(card)

        logger.info(f"Marked deck {deck_id} as mastered ({len(cards)} cards)")
        await self._publish(DeckMasteredEvent(deck_id=deck_id, cards_mastered=len(cards)))
        return cards

    def start_mastery_test(self, deck_id: str) -> MasteryTest:
        deck = self.get_deck(deck_id)
        return MasteryTest.for_deck(deck, self.repository.list_cards(deck_id))

    async def complete_mastery_test(
        self, test: MasteryTest, answers: Mapping[str, bool]
    ) -> bool:
        """Mark the deck as mastered if the test pass was perfect.

        Returns:
            Whether the deck was marked as mastered
        """
        if not test.is_perfect(answers):
            logger.info(f"Mastery test for deck {test.deck_id} was not perfect")
            return False
        await self.mark_deck_mastered(test.deck_id)
        return True

    def suspend_card(self, card_id: str) -> Card:
        card = suspend(self.get_card(card_id), self.clock.now())
        self.repository.put_card(card)
        return card

    def unsuspend_card(self, card_id: str) -> Card:
        now = self.clock.now()
        card = unsuspend(self.get_card(card_id), now.date(), now)
        self.repository.put_card(card)
        return card

    def bury_card(self, card_id: str) -> Card:
        now = self.clock.now()
        card = bury_until_tomorrow(self.get_card(card_id), now.date(), now)
        self.repository.put_card(card)
        return card

    # Statistics

    def deck_statistics(self, deck_id: str | None = None, days: int = 30) -> DeckStatistics:
        """Statistics for one deck, or for all decks when deck_id is None."""
        if deck_id is None:
            cards = [
                card
                for deck in self.repository.list_decks()
                for card in self.repository.list_cards(deck.id)
            ]
        else:
            self.get_deck(deck_id)
            cards = self.repository.list_cards(deck_id)

        logs = self.repository.list_review_logs(deck_id)
        return compute_statistics(cards, logs, self.clock.today(), days)

    async def _publish(self, event: DomainEvent) -> None:
        try:
            await self.event_bus.publish(event)
        except Exception as e:
            logger.error(f"Failed to publish event {event.event_name}: {e}")
