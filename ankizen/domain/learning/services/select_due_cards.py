"""Study queue selection.

Builds the day's bounded study queue for a deck from its cards. Selection is
read-only: cards and decks are never modified here, the caller persists any
state changes that follow from studying.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ankizen.domain.learning.models.learning_models import Card, Deck

PULL_AHEAD_DAYS = 2
PULL_AHEAD_LIMIT = 3


@dataclass(frozen=True)
class StudyQueue:
    """The day's study queue, split into new and due cards."""

    new_cards: list[Card] = field(default_factory=list)
    due_cards: list[Card] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.new_cards) + len(self.due_cards)

    def session_order(
        self, shuffle: bool = False, rng: random.Random | None = None
    ) -> list[Card]:
        """Cards in presentation order: new cards first, then due cards.

        Args:
            shuffle: Shuffle the combined queue instead
            rng: Random source used when shuffling
        """
        cards = [*self.new_cards, *self.due_cards]
        if shuffle:
            (rng or random.Random()).shuffle(cards)
        return cards


def is_eligible(card: Card, deck_id: str, today: date) -> bool:
    """Whether a card may be offered for study today."""
    return (
        card.deck_id == deck_id
        and not card.is_suspended
        and not card.is_leech
        and not card.is_buried_on(today)
    )


def review_sort_key(
    today: date,
) -> Callable[[Card], tuple[bool, date, float, datetime]]:
    """Ordering for review cards.

    Cards due today or earlier come first, then by due date, then lower ease
    (harder cards) first, then least recently updated first.
    """

    def key(card: Card) -> tuple[bool, date, float, datetime]:
        return (card.due_date > today, card.due_date, card.ease_factor, card.updated_at)

    return key


def _partition(
    deck_id: str, cards: Iterable[Card], today: date
) -> tuple[list[Card], list[Card]]:
    new_cards: list[Card] = []
    review_cards: list[Card] = []
    for card in cards:
        if not is_eligible(card, deck_id, today):
            continue
        if card.repetitions == 0:
            new_cards.append(card)
        else:
            review_cards.append(card)

    new_cards.sort(key=lambda c: c.created_at)
    review_cards.sort(key=review_sort_key(today))
    return new_cards, review_cards


def select_queue(deck: Deck, cards: Iterable[Card], today: date) -> StudyQueue:
    """Select the day's study queue for a deck.

    Args:
        deck: Deck whose quotas apply
        cards: The deck's cards
        today: Current day

    Returns:
        New cards within the remaining new-card quota and due cards within
        the remaining review capacity, plus up to three cards due within the
        next two days when capacity is left over
    """
    new_pool, review_pool = _partition(deck.id, cards, today)

    new_allowed = max(0, deck.new_cards_per_day - deck.new_cards_introduced_on(today))
    new_cards = new_pool[:new_allowed]

    capacity = max(0, deck.max_reviews_per_day - len(new_cards))
    strictly_due = [card for card in review_pool if card.due_date <= today]
    due_cards = strictly_due[:capacity]

    unused = capacity - len(due_cards)
    if unused > 0:
        horizon = today + timedelta(days=PULL_AHEAD_DAYS)
        ahead = [card for card in review_pool if today < card.due_date <= horizon]
        due_cards.extend(ahead[: min(unused, PULL_AHEAD_LIMIT)])

    return StudyQueue(new_cards=new_cards, due_cards=due_cards)


def select_custom_study(
    deck: Deck,
    cards: Iterable[Card],
    today: date,
    tags: Iterable[str] = (),
    limit: int = 50,
) -> list[Card]:
    """Select cards for a custom study session, ignoring due dates and quotas.

    Args:
        deck: Deck to study
        cards: The deck's cards
        today: Current day
        tags: Only include cards carrying any of these tags (all when empty)
        limit: Maximum number of cards

    Returns:
        Review cards in review order followed by new cards oldest first

    Raises:
        ValueError: If limit is not positive
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    wanted = {tag.strip() for tag in tags if tag.strip()}
    if wanted:
        cards = [card for card in cards if wanted.intersection(card.tags)]

    new_pool, review_pool = _partition(deck.id, cards, today)
    return [*review_pool, *new_pool][:limit]
