"""
Card service: read -> compute -> write around the pure core.

The lifecycle and scheduler modules never touch storage. This layer loads a
card through the database module, runs the transition, and writes the result
back (schedule and review log in one transaction, guarded by a
compare-and-swap on `reps`).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from cards import config, lifecycle
from cards.card import Card
from cards.due_queue import CardCounts, DueCardsResult
from cards.errors import CardNotFoundError
from cards.fsrs import database
from cards.fsrs.constants import CardStatus, Rating
from cards.fsrs.memory_state import utc_now
from cards.fsrs.parameters import SchedulerParameters
from cards.grader import Grader, GraderResult
from cards.lifecycle import ReviewOutcome
from cards.schemas import CardCreate

logger = logging.getLogger(__name__)


class CardService:
    """
    Card operations for a single owner.

    Args:
        user_id: Owner scope (DEFAULT_USER_ID if omitted)
        parameters: Scheduler configuration (FSRS_* environment if omitted)
        grader: Answer grader used by evaluate()
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        parameters: Optional[SchedulerParameters] = None,
        grader: Optional[Grader] = None
    ):
        self.user_id = user_id or config.get_default_user_id()
        self.parameters = parameters or config.load_scheduler_parameters()
        self.grader = grader

    def _load(self, card_id: str) -> Card:
        card = database.get_card_by_id(card_id, self.user_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    # ---- Triage ----

    def create_cards(self, inputs: Iterable[CardCreate], now: Optional[datetime] = None) -> list[Card]:
        """Create cards in triage from validated input."""
        now = now or utc_now()
        cards = [
            lifecycle.create(
                front=item.front,
                context=item.context,
                tags=item.tags,
                source_conversation=item.source_conversation,
                now=now,
            )
            for item in inputs
        ]
        return database.create_cards(cards, self.user_id)

    def get_card(self, card_id: str) -> Card:
        return self._load(card_id)

    def list_cards(self, status: Optional[CardStatus] = None) -> list[Card]:
        return database.list_cards(self.user_id, status)

    def accept(self, card_id: str) -> Card:
        card = lifecycle.accept(self._load(card_id))
        return self._save_edit(card_id, {"status": card.status})

    def skip(self, card_id: str) -> Card:
        card = lifecycle.skip(self._load(card_id))
        return self._save_edit(card_id, {"status": card.status})

    def edit(self, card_id: str, fields: Mapping[str, Any]) -> Card:
        """Edit content fields and/or status (never scheduling fields)."""
        lifecycle.edit(self._load(card_id), fields)
        return self._save_edit(card_id, fields)

    def _save_edit(self, card_id: str, fields: Mapping[str, Any]) -> Card:
        updated = database.edit_card(card_id, self.user_id, fields)
        if updated is None:
            raise CardNotFoundError(card_id)
        return updated

    def delete(self, card_id: str) -> None:
        """Delete a card and its review history."""
        if not database.delete_card(card_id, self.user_id):
            raise CardNotFoundError(card_id)

    # ---- Review ----

    def review(
        self,
        card_id: str,
        rating: Rating | str | int,
        now: Optional[datetime] = None,
        answer: Optional[str] = None,
        llm_score: Optional[float] = None,
        llm_feedback: Optional[str] = None
    ) -> ReviewOutcome:
        """
        Review a card and persist the outcome.

        Raises:
            CardNotFoundError: If the card does not exist
            InvalidOperationError: If the card is not active
            ConcurrentReviewError: If the card was reviewed in between
        """
        card = self._load(card_id)
        outcome = lifecycle.review(
            card,
            rating,
            now=now,
            answer=answer,
            llm_score=llm_score,
            llm_feedback=llm_feedback,
            parameters=self.parameters,
        )

        stored = database.apply_review(
            card_id,
            self.user_id,
            outcome.card.schedule,
            outcome.review_log,
            expected_reps=card.reps,
        )
        if stored is None:
            raise CardNotFoundError(card_id)

        logger.info(
            "Reviewed card %s: %s -> %s, next due %s",
            card_id,
            outcome.review_log.rating.label,
            stored.state.value,
            stored.due.isoformat(),
        )
        return ReviewOutcome(card=stored, review_log=outcome.review_log)

    def evaluate(self, card_id: str, answer: str) -> GraderResult:
        """Ask the grader to score an answer. Advisory only; nothing is stored."""
        if self.grader is None:
            raise RuntimeError("No answer grader configured")
        card = self._load(card_id)
        return self.grader.evaluate(card.front, card.context, answer)

    # ---- Queue ----

    def due(self, now: Optional[datetime] = None) -> DueCardsResult:
        return database.get_due_cards(self.user_id, now or utc_now())

    def counts(self, now: Optional[datetime] = None) -> CardCounts:
        return database.get_counts(self.user_id, now or utc_now())
