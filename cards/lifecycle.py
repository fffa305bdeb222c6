"""
Card lifecycle: status/state transitions around the memory model.

Transitions:
    create  -> TRIAGING, New-card schedule
    accept  TRIAGING -> ACTIVE (schedule unchanged)
    skip    TRIAGING -> SUSPENDED
    edit    content fields and status only
    review  ACTIVE only; schedule + state change, status untouched

Every function takes a Card snapshot and returns a new one. Nothing here
touches storage.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from cards.card import EDITABLE_FIELDS, Card, normalize_tags
from cards.errors import InvalidCardError, InvalidOperationError
from cards.fsrs import scheduler
from cards.fsrs.constants import CardStatus, Rating
from cards.fsrs.memory_state import as_utc, initialize, utc_now
from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters
from cards.review_log import ReviewLog, build_review_log


@dataclass(frozen=True)
class ReviewOutcome:
    """Updated card plus the log entry the caller must persist with it."""
    card: Card
    review_log: ReviewLog


def create(
    front: str,
    context: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    source_conversation: Optional[str] = None,
    now: Optional[datetime] = None,
    card_id: Optional[str] = None
) -> Card:
    """
    Create a card in triage.

    Args:
        front: Prompt shown to the learner (required, non-blank)
        context: Reference material for the answer
        tags: Tag strings (order kept, duplicates dropped)
        source_conversation: Where the card came from
        now: Creation instant (defaults to now)
        card_id: Explicit id (a fresh UUID4 otherwise)

    Returns:
        Card with status TRIAGING and a New-card schedule due at `now`
    """
    if front is None or not str(front).strip():
        raise InvalidCardError("Each card must have a non-empty 'front' field")

    now = as_utc(now) if now is not None else utc_now()
    return Card(
        id=card_id or str(uuid.uuid4()),
        front=front,
        context=context,
        source_conversation=source_conversation,
        tags=normalize_tags(tags),
        created_at=now,
        status=CardStatus.TRIAGING,
        schedule=initialize(now),
    )


def _require_status(card: Card, expected: CardStatus, action: str) -> None:
    if card.status != expected:
        raise InvalidOperationError(
            f"Cannot {action} card {card.id}: status is {card.status.value}, "
            f"expected {expected.value}"
        )


def accept(card: Card) -> Card:
    """Move a triaging card into the review rotation."""
    _require_status(card, CardStatus.TRIAGING, "accept")
    return replace(card, status=CardStatus.ACTIVE)


def skip(card: Card) -> Card:
    """
    Suspend a triaging card.

    Suspension is terminal for this machine; only an explicit edit of the
    status field brings the card back.
    """
    _require_status(card, CardStatus.TRIAGING, "skip")
    return replace(card, status=CardStatus.SUSPENDED)


def edit(card: Card, fields: Mapping[str, Any]) -> Card:
    """
    Apply a user edit to content fields and/or status.

    Args:
        card: Card to edit
        fields: Subset of front, context, source_conversation, tags, status

    Raises:
        InvalidOperationError: If any field is a scheduling field or unknown
        InvalidCardError: If front would become blank or status is unknown
    """
    rejected = sorted(set(fields) - EDITABLE_FIELDS)
    if rejected:
        raise InvalidOperationError(
            f"Fields cannot be edited: {', '.join(rejected)}"
        )

    changes = dict(fields)
    if "front" in changes and (changes["front"] is None or not str(changes["front"]).strip()):
        raise InvalidCardError("'front' cannot be empty")
    if "tags" in changes:
        changes["tags"] = normalize_tags(changes["tags"])
    if "status" in changes:
        try:
            changes["status"] = CardStatus(changes["status"])
        except ValueError:
            raise InvalidCardError(f"Unknown status: {changes['status']!r}") from None

    if not changes:
        return card
    return replace(card, **changes)


def review(
    card: Card,
    rating: Rating | str | int,
    now: Optional[datetime] = None,
    answer: Optional[str] = None,
    llm_score: Optional[float] = None,
    llm_feedback: Optional[str] = None,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> ReviewOutcome:
    """
    Review an active card.

    Delegates the scheduling math to the memory model and builds the matching
    review log entry. Grader output is carried into the log untouched.

    Args:
        card: Active card to review
        rating: Learner's rating
        now: Review instant (defaults to now)
        answer: Learner's free-text answer
        llm_score: Advisory grader score in [0, 1]
        llm_feedback: Advisory grader feedback
        parameters: Scheduler configuration

    Returns:
        ReviewOutcome(card, review_log)

    Raises:
        InvalidOperationError: If the card is not active
    """
    _require_status(card, CardStatus.ACTIVE, "review")

    rating = Rating.from_label(rating)
    now = as_utc(now) if now is not None else utc_now()

    review_log = build_review_log(
        card_id=card.id,
        rating=rating,
        reviewed_at=now,
        answer=answer,
        llm_score=llm_score,
        llm_feedback=llm_feedback,
    )
    schedule = scheduler.advance(card.schedule, rating, now, parameters)

    return ReviewOutcome(card=replace(card, schedule=schedule), review_log=review_log)
