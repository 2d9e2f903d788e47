"""SM-2 derived scheduling for flashcards.

`next_state` is a pure function: given a card, a grade and the current day it
returns the card's next scheduling fields. It never mutates the card and never
reads the wall clock, so it can be replayed deterministically.

The deck's configured base intervals only parameterize the first successful
review ("good" / "easy") and the lapse interval ("again"). Later tiers grow
from the card's own previous interval and ease factor.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from ankizen.domain.learning.models.learning_models import (
    MIN_EASE_FACTOR,
    Card,
    ScheduleIntervals,
    SchedulingState,
)
from ankizen.domain.shared.models import Grade

AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15

DEFAULT_INTERVALS = ScheduleIntervals()


def next_state(
    card: Card,
    grade: Grade,
    today: date,
    intervals: ScheduleIntervals = DEFAULT_INTERVALS,
) -> SchedulingState:
    """Compute a card's scheduling state after a grading.

    Args:
        card: Card as it was before this grading
        grade: Recall grade given by the learner
        today: Current day, used as the base of the new due date
        intervals: Base intervals for first success and lapse

    Returns:
        New due date, interval, ease factor and repetition count

    Raises:
        ValueError: If grade is not a Grade
    """
    if not isinstance(grade, Grade):
        raise ValueError(f"grade must be a Grade, got {grade!r}")

    old_interval = card.interval
    ease = card.ease_factor
    repetitions = card.repetitions

    if grade is Grade.AGAIN:
        repetitions = 0
        interval = intervals.lapse_again
        ease = max(MIN_EASE_FACTOR, ease - AGAIN_EASE_PENALTY)
    else:
        repetitions += 1
        if repetitions == 1:
            interval = _first_success_interval(grade, intervals)
        elif repetitions == 2:
            interval = _second_success_interval(grade, old_interval, ease)
        else:
            interval, ease = _mature_interval(grade, old_interval, ease)

        if card.repetitions > 0:
            interval = max(1, interval)

    return SchedulingState(
        due_date=today + timedelta(days=interval),
        interval=interval,
        ease_factor=ease,
        repetitions=repetitions,
    )


def _first_success_interval(grade: Grade, intervals: ScheduleIntervals) -> int:
    if grade is Grade.HARD:
        return 1
    if grade is Grade.GOOD:
        return intervals.good
    return intervals.easy


def _second_success_interval(grade: Grade, old_interval: int, ease: float) -> int:
    if grade is Grade.HARD:
        interval = math.ceil(old_interval * 0.8)
    elif grade is Grade.GOOD:
        interval = math.ceil(old_interval * ease * 0.8)
    else:
        interval = math.ceil(old_interval * ease * 1.2)
    return max(1, interval)


def _mature_interval(
    grade: Grade, old_interval: int, ease: float
) -> tuple[int, float]:
    interval = math.ceil(old_interval * ease)
    if grade is Grade.HARD:
        interval = max(1, math.ceil(old_interval * 1.2))
        ease = max(MIN_EASE_FACTOR, ease - HARD_EASE_PENALTY)
    elif grade is Grade.EASY:
        ease = ease + EASY_EASE_BONUS
        interval = math.ceil(old_interval * ease * 1.3)
    return max(1, interval), ease
