"""Tests for SQL persistence (SQLite temp database per test)."""

from datetime import timedelta

import pytest

from cards import lifecycle
from cards.errors import CardNotFoundError, ConcurrentReviewError
from cards.fsrs.constants import CardState, CardStatus, Rating
from cards.review_log import build_review_log


USER = "alice"
OTHER = "bob"


def store(db, *cards, user_id=USER):
    db.create_cards(list(cards), user_id)
    return cards[0] if len(cards) == 1 else cards


class TestCards:
    def test_round_trip(self, db, t0):
        card = lifecycle.create(
            "What is FSRS?", context="A scheduler", tags=["srs"], source_conversation="chat-1", now=t0
        )
        store(db, card)
        loaded = db.get_card_by_id(card.id, USER)
        assert loaded == card
        assert loaded.due.tzinfo is not None

    def test_init_db_is_idempotent(self, db):
        db.init_db()
        db.init_db()

    def test_missing_card(self, db):
        assert db.get_card_by_id("nope", USER) is None

    def test_user_scoping(self, db, t0):
        card = store(db, lifecycle.create("Q", now=t0))
        assert db.get_card_by_id(card.id, OTHER) is None
        assert db.list_cards(OTHER) == []
        assert db.edit_card(card.id, OTHER, {"front": "hijack"}) is None
        assert db.delete_card(card.id, OTHER) is False
        assert db.get_card_by_id(card.id, USER).front == "Q"

    def test_list_by_status(self, db, t0):
        first = lifecycle.create("first", now=t0)
        second = lifecycle.accept(lifecycle.create("second", now=t0 + timedelta(minutes=1)))
        store(db, first, second)
        assert [c.front for c in db.list_cards(USER)] == ["second", "first"]
        assert [c.front for c in db.list_cards(USER, CardStatus.ACTIVE)] == ["second"]

    def test_edit_ignores_scheduling_fields(self, db, t0):
        card = store(db, lifecycle.create("Q", now=t0))
        updated = db.edit_card(
            card.id, USER, {"front": "Q2", "tags": ["x"], "status": "active", "reps": 99}
        )
        assert updated.front == "Q2"
        assert updated.tags == ("x",)
        assert updated.status == CardStatus.ACTIVE
        assert updated.reps == 0


class TestDueQueries:
    def test_due_cards_and_upcoming(self, db, t0):
        due = lifecycle.accept(lifecycle.create("due", now=t0))
        later = lifecycle.accept(lifecycle.create("later", now=t0 + timedelta(days=1)))
        triaging = lifecycle.create("triaging", now=t0 - timedelta(days=1))
        suspended = lifecycle.skip(lifecycle.create("suspended", now=t0 - timedelta(days=1)))
        store(db, due, later, triaging, suspended)

        result = db.get_due_cards(USER, t0)
        assert [c.front for c in result.cards] == ["due"]
        assert result.upcoming_count == 1
        assert result.next_due == later.due

        counts = db.get_counts(USER, t0)
        assert counts.new == 1
        assert counts.due == len(result.cards)

    def test_equal_due_is_stable(self, db, t0):
        cards = [lifecycle.accept(lifecycle.create(f"card {i}", now=t0)) for i in range(5)]
        store(db, *cards)
        first = [c.id for c in db.get_due_cards(USER, t0).cards]
        second = [c.id for c in db.get_due_cards(USER, t0).cards]
        assert first == second == sorted(first)

    def test_counts_are_scoped(self, db, t0):
        store(db, lifecycle.create("mine", now=t0))
        store(db, lifecycle.create("theirs", now=t0), user_id=OTHER)
        assert db.get_counts(USER, t0).new == 1
        assert db.get_counts(OTHER, t0).new == 1


class TestReviews:
    def test_apply_review(self, db, t0):
        card = store(db, lifecycle.accept(lifecycle.create("Q", now=t0)))
        outcome = lifecycle.review(card, Rating.GOOD, now=t0, answer="A", llm_score=0.7)

        stored = db.apply_review(
            card.id, USER, outcome.card.schedule, outcome.review_log, expected_reps=0
        )
        assert stored.reps == 1
        assert stored.state == CardState.LEARNING
        assert stored.due == outcome.card.due

        logs = db.get_review_logs(card.id, USER)
        assert len(logs) == 1
        assert logs[0] == outcome.review_log

    def test_stale_review_is_rejected(self, db, t0):
        card = store(db, lifecycle.accept(lifecycle.create("Q", now=t0)))
        first = lifecycle.review(card, Rating.GOOD, now=t0)
        second = lifecycle.review(card, Rating.AGAIN, now=t0)

        db.apply_review(card.id, USER, first.card.schedule, first.review_log, expected_reps=0)
        with pytest.raises(ConcurrentReviewError):
            db.apply_review(card.id, USER, second.card.schedule, second.review_log, expected_reps=0)

        assert db.get_card_by_id(card.id, USER).reps == 1
        assert len(db.get_review_logs(card.id, USER)) == 1

    def test_apply_review_missing_card(self, db, t0):
        card = lifecycle.accept(lifecycle.create("Q", now=t0))
        outcome = lifecycle.review(card, Rating.GOOD, now=t0)
        assert db.apply_review(card.id, USER, outcome.card.schedule, outcome.review_log, 0) is None

    def test_update_schedule(self, db, t0):
        card = store(db, lifecycle.accept(lifecycle.create("Q", now=t0)))
        outcome = lifecycle.review(card, Rating.EASY, now=t0)
        updated = db.update_schedule(card.id, USER, outcome.card.schedule)
        assert updated.state == CardState.REVIEW
        assert db.update_schedule("nope", USER, outcome.card.schedule) is None

    def test_review_log_needs_card(self, db, t0):
        log = build_review_log("missing", Rating.GOOD, t0)
        with pytest.raises(CardNotFoundError):
            db.create_review_log(log, USER)

    def test_logs_are_oldest_first(self, db, t0):
        card = store(db, lifecycle.create("Q", now=t0))
        for minutes in (30, 10, 20):
            db.create_review_log(build_review_log(card.id, Rating.GOOD, t0 + timedelta(minutes=minutes)), USER)
        times = [log.reviewed_at for log in db.get_review_logs(card.id, USER)]
        assert times == sorted(times)
        assert db.get_review_logs(card.id, OTHER) == []

    def test_delete_removes_logs(self, db, t0):
        card = store(db, lifecycle.accept(lifecycle.create("Q", now=t0)))
        outcome = lifecycle.review(card, Rating.GOOD, now=t0)
        db.apply_review(card.id, USER, outcome.card.schedule, outcome.review_log, 0)

        assert db.delete_card(card.id, USER) is True
        assert db.get_card_by_id(card.id, USER) is None
        assert db.get_review_logs(card.id, USER) == []
        assert db.delete_card(card.id, USER) is False
