"""
Append-only review log entries.

One entry is produced alongside every state transition caused by a review.
Entries reference their card by id only and are never mutated.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from cards.errors import InvalidCardError
from cards.fsrs.constants import Rating
from cards.fsrs.memory_state import as_utc


@dataclass(frozen=True)
class ReviewLog:
    """
    Audit record of one review.

    `llm_score` and `llm_feedback` come from the advisory answer grader and
    are stored for audit only; the scheduler never reads them.
    """
    id: str
    card_id: str
    rating: Rating
    reviewed_at: datetime
    answer: Optional[str] = None
    llm_score: Optional[float] = None
    llm_feedback: Optional[str] = None


def build_review_log(
    card_id: str,
    rating: Rating | str | int,
    reviewed_at: datetime,
    answer: Optional[str] = None,
    llm_score: Optional[float] = None,
    llm_feedback: Optional[str] = None,
    log_id: Optional[str] = None
) -> ReviewLog:
    """
    Create a review log entry.

    Args:
        card_id: Id of the reviewed card
        rating: Rating applied
        reviewed_at: Review instant
        answer: Learner's free-text answer, if any
        llm_score: Grader score in [0, 1], if the answer was graded
        llm_feedback: Grader feedback text
        log_id: Explicit id (a fresh UUID4 otherwise)

    Raises:
        InvalidCardError: If llm_score is outside [0, 1]
    """
    if llm_score is not None:
        llm_score = float(llm_score)
        if math.isnan(llm_score) or not 0.0 <= llm_score <= 1.0:
            raise InvalidCardError(f"llm_score must be between 0 and 1 (got {llm_score})")

    return ReviewLog(
        id=log_id or str(uuid.uuid4()),
        card_id=card_id,
        rating=Rating.from_label(rating),
        reviewed_at=as_utc(reviewed_at),
        answer=answer,
        llm_score=llm_score,
        llm_feedback=llm_feedback,
    )
