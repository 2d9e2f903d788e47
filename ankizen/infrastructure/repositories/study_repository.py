"""Repository boundary for cards, decks and review logs.

The scheduling engine only ever sees entity values; storing them is the job
of a StudyRepository. InMemoryStudyRepository backs tests and short-lived
sessions, SqlStudyRepository (infrastructure.database) backs the CLI.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol

from ankizen.domain.learning.models.learning_models import Card, Deck, ReviewLog

logger = logging.getLogger(__name__)


class StudyRepository(Protocol):
    """Narrow get/put interface over the three entity collections.

    Deleting a deck removes its cards and review logs; deleting a card
    removes its review logs. Writes made inside `transaction()` are applied
    together or not at all.
    """

    def transaction(self) -> AbstractContextManager[None]: ...

    def get_card(self, card_id: str) -> Card | None: ...

    def put_card(self, card: Card) -> None: ...

    def delete_card(self, card_id: str) -> None: ...

    def list_cards(self, deck_id: str) -> list[Card]: ...

    def get_deck(self, deck_id: str) -> Deck | None: ...

    def put_deck(self, deck: Deck) -> None: ...

    def delete_deck(self, deck_id: str) -> None: ...

    def list_decks(self) -> list[Deck]: ...

    def add_review_log(self, log: ReviewLog) -> None: ...

    def list_review_logs(self, deck_id: str | None = None) -> list[ReviewLog]: ...

    def delete_review_logs_for_deck(self, deck_id: str) -> int: ...

    def move_review_logs(self, source_deck_id: str, target_deck_id: str) -> int: ...


class InMemoryStudyRepository:
    """Dict-backed StudyRepository."""

    def __init__(self) -> None:
        self.decks: dict[str, Deck] = {}
        self.cards: dict[str, Card] = {}
        self.review_logs: list[ReviewLog] = []
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore the previous contents if the block raises."""
        if self._in_transaction:
            yield
            return

        snapshot = (dict(self.decks), dict(self.cards), list(self.review_logs))
        self._in_transaction = True
        try:
            yield
        except Exception:
            self.decks, self.cards, self.review_logs = snapshot
            logger.debug("Rolled back in-memory transaction")
            raise
        finally:
            self._in_transaction = False

    def get_card(self, card_id: str) -> Card | None:
        return self.cards.get(card_id)

    def put_card(self, card: Card) -> None:
        self.cards[card.id] = card

    def delete_card(self, card_id: str) -> None:
        self.cards.pop(card_id, None)
        self.review_logs = [log for log in self.review_logs if log.card_id != card_id]

    def list_cards(self, deck_id: str) -> list[Card]:
        return [card for card in self.cards.values() if card.deck_id == deck_id]

    def get_deck(self, deck_id: str) -> Deck | None:
        return self.decks.get(deck_id)

    def put_deck(self, deck: Deck) -> None:
        self.decks[deck.id] = deck

    def delete_deck(self, deck_id: str) -> None:
        self.decks.pop(deck_id, None)
        self.cards = {
            card_id: card
            for card_id, card in self.cards.items()
            if card.deck_id != deck_id
        }
        self.review_logs = [log for log in self.review_logs if log.deck_id != deck_id]
        logger.debug(f"Deleted deck {deck_id} with its cards and review logs")

    def list_decks(self) -> list[Deck]:
        return sorted(self.decks.values(), key=lambda d: d.created_at)

    def add_review_log(self, log: ReviewLog) -> None:
        self.review_logs.append(log)

    def list_review_logs(self, deck_id: str | None = None) -> list[ReviewLog]:
        if deck_id is None:
            return list(self.review_logs)
        return [log for log in self.review_logs if log.deck_id == deck_id]

    def delete_review_logs_for_deck(self, deck_id: str) -> int:
        kept = [log for log in self.review_logs if log.deck_id != deck_id]
        deleted = len(self.review_logs) - len(kept)
        self.review_logs = kept
        return deleted

    def move_review_logs(self, source_deck_id: str, target_deck_id: str) -> int:
        moved = 0
        for index, log in enumerate(self.review_logs):
            if log.deck_id == source_deck_id:
                self.review_logs[index] = log.model_copy(
                    update={"deck_id": target_deck_id}
                )
                moved += 1
        return moved
