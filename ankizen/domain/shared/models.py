"""Shared models and base classes for all bounded contexts."""

from __future__ import annotations

from enum import Enum

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Grade(str, Enum):
    """Recall grades a learner can give a card."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: Grade | str) -> Grade:
        """Parse a grade, rejecting anything outside the closed set.

        Args:
            value: Grade instance or its string value (case-insensitive)

        Returns:
            Matching Grade

        Raises:
            ValueError: If the value is not a known grade
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Unknown grade: {value!r}")


class CardStatus(str, Enum):
    """Coarse learning status of a card, used for statistics."""

    NEW = "new"
    LEARNING = "learning"
    MATURE = "mature"
    LEECH = "leech"
    SUSPENDED = "suspended"
