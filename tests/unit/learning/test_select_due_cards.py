"""Tests for study queue selection."""

from __future__ import annotations

import random
from datetime import timedelta

import pytest

from ankizen.domain.learning.services.select_due_cards import (
    StudyQueue,
    is_eligible,
    select_custom_study,
    select_queue,
)


def _ids(cards) -> list[str]:
    return [card.id for card in cards]


class TestEligibility:
    """Cards hidden from study."""

    def test_filters_hidden_cards(self, make_deck, make_card, today) -> None:
        deck = make_deck()
        visible = make_card()
        cards = [
            visible,
            make_card(is_suspended=True),
            make_card(is_leech=True),
            make_card(buried_until=today),
            make_card(buried_until=today + timedelta(days=1)),
            make_card(deck_id="other-deck"),
        ]

        queue = select_queue(deck, cards, today)

        assert _ids(queue.new_cards) == [visible.id]
        assert queue.due_cards == []

    def test_bury_expired_yesterday_is_eligible(self, make_card, today) -> None:
        card = make_card(buried_until=today - timedelta(days=1))

        assert is_eligible(card, "deck-1", today) is True


class TestOrdering:
    """Order of new and review cards."""

    def test_new_cards_oldest_first(self, make_deck, make_card, today, now) -> None:
        newest = make_card(created_at=now - timedelta(days=1))
        oldest = make_card(created_at=now - timedelta(days=50))
        middle = make_card(created_at=now - timedelta(days=20))

        queue = select_queue(make_deck(), [newest, oldest, middle], today)

        assert _ids(queue.new_cards) == [oldest.id, middle.id, newest.id]

    def test_review_cards_by_due_date_then_ease_then_update(
        self, make_deck, make_card, today, now
    ) -> None:
        overdue = make_card(repetitions=2, interval=3, due_date=today - timedelta(days=3))
        due_easy = make_card(repetitions=2, interval=3, due_date=today, ease_factor=2.8)
        due_hard_recent = make_card(
            repetitions=2,
            interval=3,
            due_date=today,
            ease_factor=1.9,
            updated_at=now - timedelta(hours=1),
        )
        due_hard_stale = make_card(
            repetitions=2,
            interval=3,
            due_date=today,
            ease_factor=1.9,
            updated_at=now - timedelta(days=4),
        )

        queue = select_queue(
            make_deck(), [due_easy, due_hard_recent, overdue, due_hard_stale], today
        )

        assert _ids(queue.due_cards) == [
            overdue.id,
            due_hard_stale.id,
            due_hard_recent.id,
            due_easy.id,
        ]

    def test_cards_with_repetitions_are_never_new(
        self, make_deck, make_card, today
    ) -> None:
        card = make_card(repetitions=1, interval=0, due_date=today)

        queue = select_queue(make_deck(), [card], today)

        assert queue.new_cards == []
        assert _ids(queue.due_cards) == [card.id]


class TestQuotas:
    """Daily new-card quota and review capacity."""

    def test_exhausted_new_card_quota_returns_no_new_cards(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck(
            new_cards_per_day=20, daily_new_cards_introduced=20, last_session_date=today
        )
        cards = [make_card() for _ in range(30)]

        queue = select_queue(deck, cards, today)

        assert queue.new_cards == []

    def test_remaining_new_card_quota(self, make_deck, make_card, today) -> None:
        deck = make_deck(
            new_cards_per_day=5, daily_new_cards_introduced=3, last_session_date=today
        )
        cards = [make_card() for _ in range(10)]

        queue = select_queue(deck, cards, today)

        assert _ids(queue.new_cards) == _ids(cards[:2])

    def test_yesterdays_counter_does_not_limit_today(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck(
            new_cards_per_day=5,
            daily_new_cards_introduced=5,
            last_session_date=today - timedelta(days=1),
        )
        cards = [make_card() for _ in range(10)]

        queue = select_queue(deck, cards, today)

        assert _ids(queue.new_cards) == _ids(cards[:5])

    def test_overspent_quota_is_clamped_to_zero(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck(
            new_cards_per_day=5, daily_new_cards_introduced=9, last_session_date=today
        )

        assert select_queue(deck, [make_card()], today).new_cards == []

    def test_new_cards_consume_review_capacity(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck(new_cards_per_day=4, max_reviews_per_day=10)
        new_cards = [make_card() for _ in range(6)]
        due_cards = [
            make_card(repetitions=3, interval=5, due_date=today - timedelta(days=1))
            for _ in range(12)
        ]

        queue = select_queue(deck, new_cards + due_cards, today)

        assert len(queue.new_cards) == 4
        assert len(queue.due_cards) == 6
        assert len(queue) == deck.max_reviews_per_day

    def test_no_review_capacity_left(self, make_deck, make_card, today) -> None:
        deck = make_deck(new_cards_per_day=5, max_reviews_per_day=3)
        cards = [make_card() for _ in range(5)] + [
            make_card(repetitions=1, interval=1, due_date=today)
        ]

        queue = select_queue(deck, cards, today)

        assert len(queue.new_cards) == 5
        assert queue.due_cards == []


class TestPullAhead:
    """Filling unused capacity with cards due soon."""

    def test_pulls_cards_due_within_two_days(
        self, make_deck, make_card, today
    ) -> None:
        due_now = make_card(repetitions=2, interval=4, due_date=today)
        tomorrow = make_card(repetitions=2, interval=4, due_date=today + timedelta(days=1))
        in_two = make_card(repetitions=2, interval=4, due_date=today + timedelta(days=2))
        in_three = make_card(repetitions=2, interval=4, due_date=today + timedelta(days=3))

        queue = select_queue(make_deck(), [in_three, in_two, tomorrow, due_now], today)

        assert _ids(queue.due_cards) == [due_now.id, tomorrow.id, in_two.id]

    def test_pulls_at_most_three_cards(self, make_deck, make_card, today) -> None:
        ahead = [
            make_card(repetitions=2, interval=4, due_date=today + timedelta(days=1))
            for _ in range(6)
        ]

        queue = select_queue(make_deck(), ahead, today)

        assert _ids(queue.due_cards) == _ids(ahead[:3])

    def test_pull_ahead_limited_by_unused_capacity(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck(max_reviews_per_day=2)
        due_now = make_card(repetitions=2, interval=4, due_date=today)
        ahead = [
            make_card(repetitions=2, interval=4, due_date=today + timedelta(days=1))
            for _ in range(3)
        ]

        queue = select_queue(deck, [due_now, *ahead], today)

        assert _ids(queue.due_cards) == [due_now.id, ahead[0].id]

    def test_no_pull_ahead_when_capacity_is_used(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck(max_reviews_per_day=1)
        due_now = make_card(repetitions=2, interval=4, due_date=today)
        tomorrow = make_card(repetitions=2, interval=4, due_date=today + timedelta(days=1))

        queue = select_queue(deck, [due_now, tomorrow], today)

        assert _ids(queue.due_cards) == [due_now.id]


class TestReadOnly:
    def test_selection_does_not_modify_inputs(
        self, make_deck, make_card, today
    ) -> None:
        deck = make_deck()
        cards = [make_card(), make_card(repetitions=1, interval=1, due_date=today)]
        before = [card.model_dump() for card in cards]
        deck_before = deck.model_dump()

        select_queue(deck, cards, today)

        assert [card.model_dump() for card in cards] == before
        assert deck.model_dump() == deck_before


class TestSessionOrder:
    def test_new_cards_come_first(self, make_card) -> None:
        new, due = make_card(), make_card(repetitions=1)
        queue = StudyQueue(new_cards=[new], due_cards=[due])

        assert queue.session_order() == [new, due]

    def test_shuffle_keeps_all_cards(self, make_card) -> None:
        cards = [make_card() for _ in range(8)]
        queue = StudyQueue(new_cards=cards[:4], due_cards=cards[4:])

        shuffled = queue.session_order(shuffle=True, rng=random.Random(7))

        assert sorted(_ids(shuffled)) == sorted(_ids(cards))


class TestCustomStudy:
    """Tag-filtered custom sessions."""

    def test_filters_by_any_tag(self, make_deck, make_card, today) -> None:
        verb = make_card(tags=["verbs"])
        noun = make_card(tags=["nouns"])
        both = make_card(tags=["verbs", "n5"])

        cards = select_custom_study(make_deck(), [verb, noun, both], today, ["verbs"])

        assert _ids(cards) == [verb.id, both.id]

    def test_ignores_due_dates_and_puts_reviews_first(
        self, make_deck, make_card, today
    ) -> None:
        new = make_card()
        future = make_card(repetitions=4, interval=30, due_date=today + timedelta(days=20))

        cards = select_custom_study(make_deck(), [new, future], today)

        assert _ids(cards) == [future.id, new.id]

    def test_applies_limit(self, make_deck, make_card, today) -> None:
        cards = [make_card() for _ in range(10)]

        assert len(select_custom_study(make_deck(), cards, today, limit=4)) == 4

    def test_excludes_hidden_cards(self, make_deck, make_card, today) -> None:
        cards = [make_card(is_leech=True), make_card(is_suspended=True)]

        assert select_custom_study(make_deck(), cards, today) == []

    def test_rejects_non_positive_limit(self, make_deck, today) -> None:
        with pytest.raises(ValueError, match="limit must be positive"):
            select_custom_study(make_deck(), [], today, limit=0)
