"""Deck progress lifecycle: bulk reset and mastery, per-card flag toggles and
the daily new-card counter.

All functions return updated copies and leave their arguments untouched.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ankizen.domain.learning.models.learning_models import (
    DEFAULT_EASE_FACTOR,
    LEECH_TAG,
    Card,
    Deck,
)

MASTERED_INTERVAL = 90
MASTERED_REPETITIONS = 5


@dataclass(frozen=True)
class DeckReset:
    """Deck and cards after a progress reset."""

    deck: Deck
    cards: list[Card]


def _without_leech_tag(tags: list[str]) -> list[str]:
    return [tag for tag in tags if tag != LEECH_TAG]


def reset_card(card: Card, today: date, now: datetime) -> Card:
    """Return the card as new, keeping its content and non-leech tags.

    Failure counters are cleared with the rest of the progress so a reset
    card starts from a clean history.
    """
    return card.model_copy(
        update={
            "due_date": today,
            "interval": 0,
            "ease_factor": DEFAULT_EASE_FACTOR,
            "repetitions": 0,
            "again_count": 0,
            "consecutive_again_count": 0,
            "is_leech": False,
            "is_suspended": False,
            "buried_until": None,
            "tags": _without_leech_tag(card.tags),
            "updated_at": now,
        }
    )


def reset_progress(
    deck: Deck, cards: Iterable[Card], today: date, now: datetime
) -> DeckReset:
    """Reset every card of the deck to new and reopen its quota window.

    Args:
        deck: Deck to reset
        cards: The deck's cards; cards of other decks are ignored
        today: Current day
        now: Current instant, stamped as the cards' update time

    Returns:
        Updated deck and cards. Deleting the deck's review logs is left to
        the caller, which owns storage.
    """
    reset_cards = [reset_card(card, today, now) for card in cards if card.deck_id == deck.id]
    reset_deck = deck.model_copy(
        update={
            "daily_new_cards_introduced": 0,
            "last_session_date": today,
            "updated_at": now,
        }
    )
    return DeckReset(deck=reset_deck, cards=reset_cards)


def master_card(card: Card, today: date, now: datetime) -> Card:
    """Return the card forced into a mature state."""
    return card.model_copy(
        update={
            "due_date": today + timedelta(days=MASTERED_INTERVAL),
            "interval": MASTERED_INTERVAL,
            "ease_factor": DEFAULT_EASE_FACTOR,
            "repetitions": MASTERED_REPETITIONS,
            "consecutive_again_count": 0,
            "is_leech": False,
            "is_suspended": False,
            "buried_until": None,
            "tags": _without_leech_tag(card.tags),
            "updated_at": now,
        }
    )


def mark_as_mastered(
    deck: Deck, cards: Iterable[Card], today: date, now: datetime
) -> list[Card]:
    """Force every card of the deck into a mature state.

    The deck's quota window and review logs are left as they are.
    """
    return [master_card(card, today, now) for card in cards if card.deck_id == deck.id]


def suspend(card: Card, now: datetime) -> Card:
    """Hide the card until it is unsuspended."""
    return card.model_copy(update={"is_suspended": True, "updated_at": now})


def unsuspend(card: Card, today: date, now: datetime) -> Card:
    """Make the card eligible again right away."""
    return card.model_copy(
        update={
            "is_suspended": False,
            "buried_until": None,
            "due_date": today,
            "updated_at": now,
        }
    )


def bury_until_tomorrow(card: Card, today: date, now: datetime) -> Card:
    """Hide the card for the rest of today and make it due tomorrow."""
    tomorrow = today + timedelta(days=1)
    return card.model_copy(
        update={"buried_until": tomorrow, "due_date": tomorrow, "updated_at": now}
    )


def record_new_card_introduced(deck: Deck, today: date, now: datetime) -> Deck:
    """Count a new card graduating today against the deck's quota window.

    The counter restarts at 1 on the first graduation of a new day and never
    rises above the deck's new-card quota.
    """
    introduced = deck.new_cards_introduced_on(today) + 1
    introduced = max(0, min(introduced, deck.new_cards_per_day))

    return deck.model_copy(
        update={
            "daily_new_cards_introduced": introduced,
            "last_session_date": today,
            "updated_at": now,
        }
    )
