"""Tests for CardService orchestration against a temp SQLite database."""

from datetime import timedelta

import pytest

from cards.errors import CardNotFoundError, InvalidOperationError
from cards.fsrs.constants import CardState, CardStatus, Rating
from cards.fsrs.parameters import SchedulerParameters
from cards.grader import GraderResult
from cards.schemas import CardCreate
from cards.service import CardService


class StubGrader:
    def __init__(self, score=0.8, feedback="Covers the key point."):
        self.result = GraderResult(score=score, feedback=feedback)
        self.calls = []

    def evaluate(self, front, context, answer):
        self.calls.append((front, context, answer))
        return self.result


@pytest.fixture
def service(db):
    return CardService(user_id="alice", parameters=SchedulerParameters())


def add(service, front, now, **kwargs):
    return service.create_cards([CardCreate(front=front, **kwargs)], now=now)[0]


class TestTriageFlow:
    def test_create_accept_review(self, service, t0):
        card = add(service, "What is a lapse?", t0, context="An Again on a Review card")
        assert card.status == CardStatus.TRIAGING
        assert service.counts(t0).new == 1

        service.accept(card.id)
        assert service.counts(t0).new == 0
        assert [c.id for c in service.due(t0).cards] == [card.id]

        outcome = service.review(card.id, Rating.GOOD, now=t0 + timedelta(minutes=1))
        assert outcome.card.reps == 1
        assert outcome.card.state == CardState.LEARNING
        assert service.get_card(card.id).reps == 1

    def test_skip_removes_from_queue(self, service, t0):
        card = add(service, "Q", t0)
        service.skip(card.id)
        assert service.due(t0 + timedelta(days=30)).cards == []
        assert service.counts(t0).due == 0
        with pytest.raises(InvalidOperationError):
            service.review(card.id, Rating.GOOD, now=t0)

    def test_edit_status_reinstates(self, service, t0):
        card = add(service, "Q", t0)
        service.skip(card.id)
        restored = service.edit(card.id, {"status": "active"})
        assert restored.status == CardStatus.ACTIVE
        assert service.counts(t0).due == 1

    def test_edit_rejects_scheduling_fields(self, service, t0):
        card = add(service, "Q", t0)
        with pytest.raises(InvalidOperationError):
            service.edit(card.id, {"due": t0 + timedelta(days=5)})

    def test_list_cards(self, service, t0):
        add(service, "one", t0)
        second = add(service, "two", t0 + timedelta(seconds=1))
        service.accept(second.id)
        assert len(service.list_cards()) == 2
        assert [c.front for c in service.list_cards(CardStatus.ACTIVE)] == ["two"]


class TestReview:
    def test_review_with_grader_output(self, service, db, t0):
        card = add(service, "Q", t0)
        service.accept(card.id)
        service.review(card.id, "good", now=t0, answer="A", llm_score=0.4, llm_feedback="meh")
        logs = db.get_review_logs(card.id, "alice")
        assert len(logs) == 1
        assert logs[0].rating == Rating.GOOD
        assert logs[0].llm_score == 0.4

    def test_lapse_goes_to_relearning(self, service, t0):
        card = add(service, "Q", t0)
        service.accept(card.id)
        reviewed = service.review(card.id, Rating.EASY, now=t0).card
        assert reviewed.state == CardState.REVIEW

        lapsed = service.review(card.id, Rating.AGAIN, now=reviewed.due).card
        assert lapsed.state == CardState.RELEARNING
        assert lapsed.lapses == 1
        assert lapsed.schedule.learning_steps == 0

    def test_unknown_card(self, service, t0):
        with pytest.raises(CardNotFoundError):
            service.review("missing", Rating.GOOD, now=t0)
        with pytest.raises(CardNotFoundError):
            service.accept("missing")
        with pytest.raises(CardNotFoundError):
            service.delete("missing")

    def test_other_user_cannot_see_card(self, service, t0):
        card = add(service, "Q", t0)
        other = CardService(user_id="bob", parameters=SchedulerParameters())
        with pytest.raises(CardNotFoundError):
            other.get_card(card.id)
        assert other.counts(t0).new == 0

    def test_delete(self, service, t0):
        card = add(service, "Q", t0)
        service.delete(card.id)
        with pytest.raises(CardNotFoundError):
            service.get_card(card.id)


class TestEvaluate:
    def test_evaluate_uses_grader(self, db, t0):
        grader = StubGrader()
        service = CardService(user_id="alice", parameters=SchedulerParameters(), grader=grader)
        card = add(service, "What is FSRS?", t0, context="Free Spaced Repetition Scheduler")

        result = service.evaluate(card.id, "A scheduler")
        assert result.score == 0.8
        assert grader.calls == [("What is FSRS?", "Free Spaced Repetition Scheduler", "A scheduler")]
        assert service.get_card(card.id).reps == 0

    def test_evaluate_without_grader(self, service, t0):
        card = add(service, "Q", t0)
        with pytest.raises(RuntimeError):
            service.evaluate(card.id, "answer")


def test_parameters_from_environment(db, monkeypatch):
    monkeypatch.setenv("FSRS_LEARNING_STEPS", "5m")
    service = CardService(user_id="alice")
    assert service.parameters.learning_steps == (timedelta(minutes=5),)
