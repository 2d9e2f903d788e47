"""SQLite storage for decks, cards and review logs."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ankizen.domain.learning.models.learning_models import Card, Deck, ReviewLog
from ankizen.domain.shared.models import Base, Grade
from ankizen.infrastructure.database.models import (
    CardRecord,
    DeckRecord,
    ReviewLogRecord,
)

logger = logging.getLogger(__name__)


def _to_db_time(value: datetime) -> datetime:
    """SQLite has no time zones; store naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def _from_db_time(value: datetime) -> datetime:
    """Stored UTC back to local time, so review days match SystemClock."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone()


class DatabaseManager:
    """Manages the SQLite engine and sessions."""

    def __init__(self, db_path: str | Path = "data/ankizen.db") -> None:
        """Initialize database manager.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )

        # Enable foreign keys for SQLite so deletes cascade
        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_connection: Any, _: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._create_tables()

    def _create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Yields:
            Database session, committed on success and rolled back on error.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class SqlStudyRepository:
    """StudyRepository backed by a DatabaseManager."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager = db_manager
        self._active_session: Session | None = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed repository calls in one session and one commit."""
        if self._active_session is not None:
            yield
            return

        with self.db_manager.get_session() as session:
            self._active_session = session
            try:
                yield
            finally:
                self._active_session = None

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._active_session is not None:
            yield self._active_session
            # Keep statements in call order inside a transaction
            self._active_session.flush()
            return
        with self.db_manager.get_session() as session:
            yield session

    # Cards

    def get_card(self, card_id: str) -> Card | None:
        with self._session() as session:
            record = session.get(CardRecord, card_id)
            return self._card_from_record(record) if record else None

    def put_card(self, card: Card) -> None:
        with self._session() as session:
            record = session.get(CardRecord, card.id) or CardRecord(id=card.id)
            self._apply_card(record, card)
            session.add(record)

    def delete_card(self, card_id: str) -> None:
        with self._session() as session:
            session.query(ReviewLogRecord).filter_by(card_id=card_id).delete()
            session.query(CardRecord).filter_by(id=card_id).delete()

    def list_cards(self, deck_id: str) -> list[Card]:
        with self._session() as session:
            records = (
                session.query(CardRecord)
                .filter_by(deck_id=deck_id)
                .order_by(CardRecord.created_at)
                .all()
            )
            return [self._card_from_record(r) for r in records]

    # Decks

    def get_deck(self, deck_id: str) -> Deck | None:
        with self._session() as session:
            record = session.get(DeckRecord, deck_id)
            return self._deck_from_record(record) if record else None

    def put_deck(self, deck: Deck) -> None:
        with self._session() as session:
            record = session.get(DeckRecord, deck.id) or DeckRecord(id=deck.id)
            self._apply_deck(record, deck)
            session.add(record)

    def delete_deck(self, deck_id: str) -> None:
        with self._session() as session:
            session.query(ReviewLogRecord).filter_by(deck_id=deck_id).delete()
            session.query(CardRecord).filter_by(deck_id=deck_id).delete()
            session.query(DeckRecord).filter_by(id=deck_id).delete()
        logger.info(f"Deleted deck {deck_id} with its cards and review logs")

    def list_decks(self) -> list[Deck]:
        with self._session() as session:
            records = session.query(DeckRecord).order_by(DeckRecord.created_at).all()
            return [self._deck_from_record(r) for r in records]

    # Review logs

    def add_review_log(self, log: ReviewLog) -> None:
        with self._session() as session:
            session.add(
                ReviewLogRecord(
                    id=log.id,
                    card_id=log.card_id,
                    deck_id=log.deck_id,
                    timestamp=_to_db_time(log.timestamp),
                    grade=log.grade.value,
                )
            )

    def list_review_logs(self, deck_id: str | None = None) -> list[ReviewLog]:
        with self._session() as session:
            query = session.query(ReviewLogRecord)
            if deck_id is not None:
                query = query.filter_by(deck_id=deck_id)
            return [
                ReviewLog(
                    id=r.id,
                    card_id=r.card_id,
                    deck_id=r.deck_id,
                    timestamp=_from_db_time(r.timestamp),
                    grade=Grade(r.grade),
                )
                for r in query.order_by(ReviewLogRecord.timestamp).all()
            ]

    def delete_review_logs_for_deck(self, deck_id: str) -> int:
        with self._session() as session:
            deleted: int = (
                session.query(ReviewLogRecord).filter_by(deck_id=deck_id).delete()
            )
        return deleted

    def move_review_logs(self, source_deck_id: str, target_deck_id: str) -> int:
        with self._session() as session:
            moved: int = (
                session.query(ReviewLogRecord)
                .filter_by(deck_id=source_deck_id)
                .update({"deck_id": target_deck_id})
            )
        return moved

    # Mapping

    @staticmethod
    def _apply_card(record: CardRecord, card: Card) -> None:
        record.deck_id = card.deck_id
        record.front = card.front
        record.reading = card.reading
        record.translation = card.translation
        record.notes = card.notes
        record.tags = json.dumps(card.tags, ensure_ascii=False)
        record.due_date = card.due_date
        record.interval = card.interval
        record.ease_factor = card.ease_factor
        record.repetitions = card.repetitions
        record.again_count = card.again_count
        record.consecutive_again_count = card.consecutive_again_count
        record.is_leech = card.is_leech
        record.is_suspended = card.is_suspended
        record.buried_until = card.buried_until
        record.created_at = _to_db_time(card.created_at)
        record.updated_at = _to_db_time(card.updated_at)

    @staticmethod
    def _card_from_record(record: CardRecord) -> Card:
        return Card(
            id=record.id,
            deck_id=record.deck_id,
            front=record.front,
            reading=record.reading,
            translation=record.translation,
            notes=record.notes,
            tags=json.loads(record.tags or "[]"),
            due_date=record.due_date,
            interval=record.interval,
            ease_factor=record.ease_factor,
            repetitions=record.repetitions,
            again_count=record.again_count,
            consecutive_again_count=record.consecutive_again_count,
            is_leech=record.is_leech,
            is_suspended=record.is_suspended,
            buried_until=record.buried_until,
            created_at=_from_db_time(record.created_at),
            updated_at=_from_db_time(record.updated_at),
        )

    @staticmethod
    def _apply_deck(record: DeckRecord, deck: Deck) -> None:
        record.name = deck.name
        record.new_cards_per_day = deck.new_cards_per_day
        record.max_reviews_per_day = deck.max_reviews_per_day
        record.initial_good_interval = deck.initial_good_interval
        record.initial_easy_interval = deck.initial_easy_interval
        record.lapse_again_interval = deck.lapse_again_interval
        record.daily_new_cards_introduced = deck.daily_new_cards_introduced
        record.last_session_date = deck.last_session_date
        record.created_at = _to_db_time(deck.created_at)
        record.updated_at = _to_db_time(deck.updated_at)

    @staticmethod
    def _deck_from_record(record: DeckRecord) -> Deck:
        return Deck(
            id=record.id,
            name=record.name,
            new_cards_per_day=record.new_cards_per_day,
            max_reviews_per_day=record.max_reviews_per_day,
            initial_good_interval=record.initial_good_interval,
            initial_easy_interval=record.initial_easy_interval,
            lapse_again_interval=record.lapse_again_interval,
            daily_new_cards_introduced=record.daily_new_cards_introduced,
            last_session_date=record.last_session_date,
            created_at=_from_db_time(record.created_at),
            updated_at=_from_db_time(record.updated_at),
        )
