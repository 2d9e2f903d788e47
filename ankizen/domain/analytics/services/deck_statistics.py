"""Study statistics over cards and the review log.

Everything here is read-only; the review log is consulted only for
statistics, never for scheduling.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from ankizen.domain.learning.models.learning_models import Card, ReviewLog
from ankizen.domain.shared.models import CardStatus

MATURE_INTERVAL = 21

# (label, min interval, max interval); None means unbounded
INTERVAL_BUCKETS: list[tuple[str, int, int | None]] = [
    ("1-2", 1, 2),
    ("3-7", 3, 7),
    ("8-14", 8, 14),
    ("15-30", 15, 30),
    ("31-90", 31, 90),
    ("91-180", 91, 180),
    (">180", 181, None),
]


@dataclass
class DeckStatistics:
    """Snapshot of a deck's (or all decks') learning progress."""

    total_cards: int
    status_counts: dict[CardStatus, int]
    interval_distribution: dict[str, int]
    reviews_per_day: dict[date, int]
    total_reviews: int
    current_streak: int
    longest_streak: int
    grade_counts: dict[str, int] = field(default_factory=dict)


def card_status(card: Card) -> CardStatus:
    """Classify a card; suspension and leech status take precedence."""
    if card.is_suspended:
        return CardStatus.SUSPENDED
    if card.is_leech:
        return CardStatus.LEECH
    if card.is_new:
        return CardStatus.NEW
    if card.interval >= MATURE_INTERVAL:
        return CardStatus.MATURE
    return CardStatus.LEARNING


def interval_distribution(cards: Iterable[Card]) -> dict[str, int]:
    """Count cards per interval bucket, leaving out empty buckets."""
    counts: Counter[str] = Counter()
    for card in cards:
        if card.is_new:
            counts["new"] += 1
            continue
        if card.repetitions == 0:
            continue
        for label, low, high in INTERVAL_BUCKETS:
            if card.interval >= low and (high is None or card.interval <= high):
                counts[label] += 1
                break

    labels = ["new", *(label for label, _, _ in INTERVAL_BUCKETS)]
    return {label: counts[label] for label in labels if counts[label]}


def reviews_per_day(
    logs: Iterable[ReviewLog], today: date, days: int = 30
) -> dict[date, int]:
    """Reviews per calendar day for the last `days` days, oldest first."""
    start = today - timedelta(days=days - 1)
    counts = Counter(
        log.timestamp.date() for log in logs if start <= log.timestamp.date() <= today
    )
    return {start + timedelta(days=i): counts[start + timedelta(days=i)] for i in range(days)}


def review_streaks(logs: Iterable[ReviewLog], today: date) -> tuple[int, int]:
    """Current and longest runs of consecutive days with at least one review.

    The current streak still counts when the last review was yesterday, so it
    does not drop to zero before today's session.
    """
    days = sorted({log.timestamp.date() for log in logs})
    if not days:
        return 0, 0

    longest = run = 1
    for previous, current in zip(days, days[1:]):
        run = run + 1 if current - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    reviewed = set(days)
    cursor = today if today in reviewed else today - timedelta(days=1)
    current_streak = 0
    while cursor in reviewed:
        current_streak += 1
        cursor -= timedelta(days=1)

    return current_streak, longest


def compute_statistics(
    cards: Iterable[Card], logs: Iterable[ReviewLog], today: date, days: int = 30
) -> DeckStatistics:
    """Build a statistics snapshot.

    Args:
        cards: Cards to summarize
        logs: Review log entries of the same cards
        today: Current day
        days: Length of the daily activity window
    """
    cards = list(cards)
    logs = list(logs)
    current_streak, longest_streak = review_streaks(logs, today)
    statuses = Counter(card_status(card) for card in cards)

    return DeckStatistics(
        total_cards=len(cards),
        status_counts={status: statuses[status] for status in CardStatus},
        interval_distribution=interval_distribution(cards),
        reviews_per_day=reviews_per_day(logs, today, days),
        total_reviews=len(logs),
        current_streak=current_streak,
        longest_streak=longest_streak,
        grade_counts=dict(Counter(log.grade.value for log in logs)),
    )
