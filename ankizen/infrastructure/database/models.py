"""SQLAlchemy tables for decks, cards and review logs."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ankizen.domain.shared.models import Base


class DeckRecord(Base):
    """A deck and its scheduling configuration."""

    __tablename__ = "decks"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)

    new_cards_per_day = Column(Integer, nullable=False, default=20)
    max_reviews_per_day = Column(Integer, nullable=False, default=200)
    initial_good_interval = Column(Integer, nullable=False, default=3)
    initial_easy_interval = Column(Integer, nullable=False, default=5)
    lapse_again_interval = Column(Integer, nullable=False, default=1)

    daily_new_cards_introduced = Column(Integer, nullable=False, default=0)
    last_session_date = Column(Date)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    cards = relationship(
        "CardRecord", back_populates="deck", cascade="all, delete-orphan"
    )


class CardRecord(Base):
    """A card with content, scheduling state and lifecycle flags."""

    __tablename__ = "cards"

    id = Column(String(36), primary_key=True)
    deck_id = Column(
        String(36), ForeignKey("decks.id", ondelete="CASCADE"), nullable=False
    )

    front = Column(Text, nullable=False)
    reading = Column(Text, nullable=False, default="")
    translation = Column(Text, nullable=False, default="")
    notes = Column(Text)
    tags = Column(Text, nullable=False, default="[]")  # JSON array

    due_date = Column(Date, nullable=False)
    interval = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=2.5)
    repetitions = Column(Integer, nullable=False, default=0)

    again_count = Column(Integer, nullable=False, default=0)
    consecutive_again_count = Column(Integer, nullable=False, default=0)

    is_leech = Column(Boolean, nullable=False, default=False)
    is_suspended = Column(Boolean, nullable=False, default=False)
    buried_until = Column(Date)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    deck = relationship("DeckRecord", back_populates="cards")

    __table_args__ = (
        Index("idx_cards_deck", "deck_id"),
        Index("idx_cards_due_date", "due_date"),
    )


class ReviewLogRecord(Base):
    """Append-only grading ledger."""

    __tablename__ = "review_logs"

    id = Column(String(36), primary_key=True)
    card_id = Column(
        String(36), ForeignKey("cards.id", ondelete="CASCADE"), nullable=False
    )
    deck_id = Column(
        String(36), ForeignKey("decks.id", ondelete="CASCADE"), nullable=False
    )
    timestamp = Column(DateTime, nullable=False)
    grade = Column(String(8), nullable=False)

    __table_args__ = (
        Index("idx_review_logs_deck", "deck_id"),
        Index("idx_review_logs_card", "card_id"),
    )
