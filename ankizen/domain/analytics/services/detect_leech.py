"""Leech detection.

A leech is a card the learner keeps failing. Once a card crosses the failure
thresholds it is quarantined: pushed far into the future, tagged "leech" and
excluded from study queues until the deck is reset or mastered.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, timedelta

from ankizen.domain.learning.models.learning_models import (
    LEECH_TAG,
    MIN_EASE_FACTOR,
    Card,
    SchedulingState,
)
from ankizen.domain.shared.models import Grade


@dataclass(frozen=True)
class LeechEvaluation:
    """Outcome of running leech detection on one grading."""

    state: SchedulingState
    again_count: int
    consecutive_again_count: int
    is_leech: bool
    tags: list[str]
    promoted: bool


class LeechDetector:
    """Tracks failure counters and promotes chronically failed cards."""

    def __init__(
        self,
        consecutive_threshold: int = 4,
        total_threshold: int = 8,
        mature_interval: int = 21,
        quarantine_days: int = 180,
        ease_penalty: float = 0.5,
    ) -> None:
        """Initialize leech detector.

        Args:
            consecutive_threshold: Consecutive "again" grades that make a leech
            total_threshold: Lifetime "again" grades that make a leech while
                the card is still immature
            mature_interval: Interval (days) at or above which the lifetime
                threshold no longer applies
            quarantine_days: Interval forced onto a promoted card
            ease_penalty: Extra ease reduction applied on promotion
        """
        self.consecutive_threshold = consecutive_threshold
        self.total_threshold = total_threshold
        self.mature_interval = mature_interval
        self.quarantine_days = quarantine_days
        self.ease_penalty = ease_penalty

    def evaluate(
        self,
        card: Card,
        grade: Grade,
        candidate: SchedulingState,
        today: date,
    ) -> LeechEvaluation:
        """Update failure counters and apply a leech promotion if due.

        Args:
            card: Card as it was before this grading
            grade: Grade given in this grading
            candidate: Scheduling state computed for this grading
            today: Current day

        Returns:
            Final scheduling state, counters, leech flag and tags
        """
        if grade is Grade.AGAIN:
            again_count = card.again_count + 1
            consecutive = card.consecutive_again_count + 1
        else:
            again_count = card.again_count
            consecutive = 0

        promoted = not card.is_leech and self.crosses_threshold(
            again_count, consecutive, card.interval
        )

        if not promoted:
            return LeechEvaluation(
                state=candidate,
                again_count=again_count,
                consecutive_again_count=consecutive,
                is_leech=card.is_leech,
                tags=list(card.tags),
                promoted=False,
            )

        state = dataclasses.replace(
            candidate,
            interval=self.quarantine_days,
            due_date=today + timedelta(days=self.quarantine_days),
            ease_factor=max(MIN_EASE_FACTOR, candidate.ease_factor - self.ease_penalty),
        )
        tags = list(card.tags)
        if LEECH_TAG not in tags:
            tags.append(LEECH_TAG)

        return LeechEvaluation(
            state=state,
            again_count=again_count,
            consecutive_again_count=consecutive,
            is_leech=True,
            tags=tags,
            promoted=True,
        )

    def crosses_threshold(
        self, again_count: int, consecutive_again_count: int, interval: int
    ) -> bool:
        """Whether the counters qualify a card as a leech.

        Args:
            again_count: Lifetime "again" grades including this grading
            consecutive_again_count: Current run of "again" grades
            interval: Card interval before this grading
        """
        if consecutive_again_count >= self.consecutive_threshold:
            return True
        return again_count >= self.total_threshold and interval < self.mature_interval
