"""
Optional mapping from a grader score to a suggested rating.

This sits above the state machine: callers may show the suggestion, but the
rating passed to a review always comes from the learner.
"""

from __future__ import annotations

from typing import Sequence

from cards.fsrs.constants import Rating


# Lower bound of each rating band, checked from the top
DEFAULT_THRESHOLDS: tuple[tuple[float, Rating], ...] = (
    (0.85, Rating.EASY),
    (0.6, Rating.GOOD),
    (0.4, Rating.HARD),
)


def suggest_rating(
    score: float,
    thresholds: Sequence[tuple[float, Rating]] = DEFAULT_THRESHOLDS
) -> Rating:
    """
    Suggest a rating for a grader score.

    Args:
        score: Grader score (values outside [0, 1] are clamped)
        thresholds: (lower_bound, rating) pairs; anything below every bound
            is AGAIN

    Returns:
        Suggested rating
    """
    score = max(0.0, min(1.0, score))
    for lower_bound, rating in sorted(thresholds, key=lambda pair: pair[0], reverse=True):
        if score >= lower_bound:
            return rating
    return Rating.AGAIN
