"""
Pydantic models for requests entering the card core.

Input is validated here, before it reaches the state machine: ratings are a
closed four-value set, a card needs a non-blank front, and edits cannot touch
scheduling fields.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cards.fsrs.constants import CardStatus, Rating


RatingLabel = Literal["Again", "Hard", "Good", "Easy"]


class CardCreate(BaseModel):
    """One card submitted for triage."""
    model_config = ConfigDict(str_strip_whitespace=True)

    front: str = Field(..., min_length=1, description="Prompt shown to the learner")
    context: Optional[str] = Field(None, description="Reference material for the answer")
    source_conversation: Optional[str] = None
    tags: Optional[list[str]] = None


class CardBatchCreate(BaseModel):
    """Several cards submitted at once."""
    cards: list[CardCreate] = Field(..., min_length=1)


class CardEdit(BaseModel):
    """
    User edit: content fields and status only.

    Unknown keys (including every scheduling field) are rejected.
    """
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    front: Optional[str] = Field(None, min_length=1)
    context: Optional[str] = None
    source_conversation: Optional[str] = None
    tags: Optional[list[str]] = None
    status: Optional[CardStatus] = None

    def changes(self) -> dict:
        """Fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class ReviewRequest(BaseModel):
    """A rating plus optional answer and advisory grader output."""
    rating: RatingLabel
    answer: Optional[str] = None
    llm_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    llm_feedback: Optional[str] = None

    @field_validator("rating", mode="before")
    @classmethod
    def _normalise_rating(cls, value):
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    def to_rating(self) -> Rating:
        return Rating.from_label(self.rating)


class EvaluateRequest(BaseModel):
    """Free-text answer to send to the grader."""
    answer: str = Field(..., min_length=1)
