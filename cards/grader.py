"""
Advisory answer grading.

A grader scores a learner's free-text answer against the card. The score and
feedback are shown to the learner and stored on the review log; they never
choose the rating.

Usage:
    from cards.grader import OpenAIGrader

    grader = OpenAIGrader()
    result = grader.evaluate(card.front, card.context, "my answer")
    print(result.score, result.feedback)
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from openai import OpenAI
from pydantic import BaseModel, Field, field_validator

from cards import config

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a flashcard answer evaluator for a spaced repetition learning system. Your job is to assess how well a learner's free-form answer demonstrates understanding of the concept being tested.

You will receive:
- QUESTION: The flashcard prompt the learner was shown
- CONTEXT: Reference material about the correct answer (may be absent)
- ANSWER: The learner's free-form response

Scoring guidelines:
- 0.0-0.2: Completely wrong, no relevant understanding demonstrated
- 0.2-0.4: Major gaps or significant misconceptions, but some vague awareness
- 0.4-0.6: Partial understanding, gets the gist but misses important details or has minor errors
- 0.6-0.8: Good understanding, covers the key points with minor omissions
- 0.8-0.9: Strong understanding, accurate and fairly complete
- 0.9-1.0: Excellent, demonstrates thorough and precise understanding

Be fair but rigorous. A vague answer that hits the right keywords but lacks specificity should score lower than a precise, concrete answer.

Keep feedback to 1-2 sentences. Be specific about what was good or what was missed."""


class GraderResult(BaseModel):
    """Score in [0, 1] plus a short explanation."""
    score: float = Field(..., description="Accuracy score from 0.0 to 1.0")
    feedback: str = Field(..., description="1-2 sentence explanation of what was good or missed")

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return max(0.0, min(1.0, value))


class Grader(Protocol):
    """Anything that can score an answer."""

    def evaluate(self, front: str, context: Optional[str], answer: str) -> GraderResult:
        ...


def build_user_message(front: str, context: Optional[str], answer: str) -> str:
    message = f"QUESTION:\n{front}\n\n"
    if context:
        message += f"CONTEXT:\n{context}\n\n"
    message += f"ANSWER:\n{answer}"
    return message


class OpenAIGrader:
    """
    Grader backed by OpenAI structured outputs.

    The client is created lazily from OPENAI_API_KEY unless one is passed in.
    """

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or config.get_grader_model()

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            api_key = config.get_openai_api_key()
            if not api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            self._client = OpenAI(api_key=api_key)
        return self._client

    def evaluate(self, front: str, context: Optional[str], answer: str) -> GraderResult:
        """
        Score an answer.

        Raises:
            ValueError: If the model returned no parseable result
            openai.APIError: If the API call fails
        """
        completion = self.client.chat.completions.parse(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_message(front, context, answer)},
            ],
            response_format=GraderResult,
        )

        result = completion.choices[0].message.parsed
        if result is None:
            raise ValueError("Failed to parse structured grader output")

        logger.debug("Graded answer with %s: score=%.2f", self.model, result.score)
        return result
