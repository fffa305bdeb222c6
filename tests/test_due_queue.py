"""Tests for the in-memory due queue and counters."""

from dataclasses import replace
from datetime import timedelta

from cards import due_queue, lifecycle
from cards.fsrs.constants import CardStatus, Rating


def make_cards(t0):
    triaging = lifecycle.create("triaging", now=t0)
    suspended = lifecycle.skip(lifecycle.create("suspended", now=t0))
    due_now = lifecycle.accept(lifecycle.create("due now", now=t0))
    overdue = lifecycle.accept(lifecycle.create("overdue", now=t0 - timedelta(days=2)))
    future = lifecycle.review(
        lifecycle.accept(lifecycle.create("future", now=t0)), Rating.EASY, now=t0
    ).card
    return triaging, suspended, due_now, overdue, future


class TestDueCards:
    def test_only_active_due_cards(self, t0):
        triaging, suspended, due_now, overdue, future = make_cards(t0)
        due = due_queue.due_cards([triaging, suspended, due_now, overdue, future], t0)
        assert [c.front for c in due] == ["overdue", "due now"]

    def test_triaging_and_suspended_never_due(self, t0):
        triaging, suspended, *_ = make_cards(t0)
        for offset in (0, 1, 365 * 10):
            now = t0 + timedelta(days=offset)
            assert due_queue.due_cards([triaging, suspended], now) == []

    def test_equal_due_is_ordered_by_id(self, t0):
        a = replace(lifecycle.accept(lifecycle.create("a", now=t0)), id="bbb")
        b = replace(lifecycle.accept(lifecycle.create("b", now=t0)), id="aaa")
        first = due_queue.due_cards([a, b], t0)
        second = due_queue.due_cards([b, a], t0)
        assert [c.id for c in first] == ["aaa", "bbb"]
        assert [c.id for c in first] == [c.id for c in second]

    def test_skipped_card_leaves_queue(self, t0):
        card = lifecycle.create("Q", now=t0)
        skipped = lifecycle.skip(card)
        assert due_queue.due_cards([skipped], t0 + timedelta(days=1)) == []
        assert due_queue.counts([skipped], t0).due == 0


class TestDueQueue:
    def test_upcoming_summary(self, t0):
        cards = make_cards(t0)
        future = cards[-1]
        result = due_queue.due_queue(iter(cards), t0)
        assert len(result.cards) == 2
        assert result.upcoming_count == 1
        assert result.next_due == future.due

    def test_nothing_upcoming(self, t0):
        result = due_queue.due_queue([], t0)
        assert result.cards == []
        assert result.upcoming_count == 0
        assert result.next_due is None


class TestCounts:
    def test_counts(self, t0):
        cards = make_cards(t0)
        counts = due_queue.counts(cards, t0)
        assert counts.new == 1
        assert counts.due == len(due_queue.due_cards(cards, t0))

    def test_counts_follow_time(self, t0):
        cards = make_cards(t0)
        later = t0 + timedelta(days=30)
        assert due_queue.counts(cards, later).due == 3
        assert all(c.status == CardStatus.ACTIVE for c in due_queue.due_cards(cards, later))
