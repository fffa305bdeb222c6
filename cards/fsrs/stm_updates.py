"""
Short-Term Memory (STM) Updates

Implements same-day stability updates and the short-interval step ladders
used while a card is Learning or Relearning.

A review less than a day after the previous one cannot be scored against the
long-term forgetting curve, so stability moves by a rating-driven factor
instead. The step ladder decides when the card is seen again within the day
and when it graduates to Review.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from cards.fsrs.constants import CardState, Rating
from cards.fsrs.ltm_updates import clamp_stability
from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters


def short_term_stability(
    stability: float,
    rating: Rating,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update stability for a same-day review.

    Formula:
        inc = e^(w[17] * (rating - 3 + w[18])) * S^-w[19]
        S'  = S * inc

    Good and Easy never lower stability (inc >= 1).
    """
    w = parameters.weights
    increase = math.exp(w[17] * (rating - 3 + w[18])) * stability ** -w[19]

    if rating in (Rating.GOOD, Rating.EASY):
        increase = max(increase, 1.0)

    return clamp_stability(stability * increase)


@dataclass(frozen=True)
class StepOutcome:
    """
    Result of moving along a step ladder.

    `delay` is None when the card graduates to Review and should be
    scheduled by the retention interval instead.
    """
    state: CardState
    step: int
    delay: Optional[timedelta]

    @property
    def graduated(self) -> bool:
        return self.delay is None


def ladder_for(
    state: CardState,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> tuple[timedelta, ...]:
    """Step ladder that applies to a Learning or Relearning card."""
    if state == CardState.RELEARNING:
        return parameters.relearning_steps
    return parameters.learning_steps


def advance_step(
    state: CardState,
    step: int,
    rating: Rating,
    steps: tuple[timedelta, ...]
) -> StepOutcome:
    """
    Move a Learning/Relearning card along its step ladder.

    Rules:
    - Empty ladder, or index already past the end with a non-Again rating:
      graduate
    - Again: back to step 0
    - Hard: stay on the current step (first step waits between steps 0 and 1)
    - Good: next step, graduating after the last one
    - Easy: graduate immediately

    Args:
        state: LEARNING or RELEARNING
        step: Current step index
        rating: Rating for this review
        steps: Ladder durations

    Returns:
        StepOutcome with the new state, step index and delay
    """
    graduate = StepOutcome(state=CardState.REVIEW, step=0, delay=None)

    if not steps:
        if rating == Rating.AGAIN:
            return StepOutcome(state=state, step=0, delay=None)
        return graduate

    if step >= len(steps) and rating != Rating.AGAIN:
        return graduate

    if rating == Rating.AGAIN:
        return StepOutcome(state=state, step=0, delay=steps[0])

    if rating == Rating.HARD:
        if step == 0 and len(steps) == 1:
            delay = steps[0] * 1.5
        elif step == 0:
            delay = (steps[0] + steps[1]) / 2
        else:
            delay = steps[step]
        return StepOutcome(state=state, step=step, delay=delay)

    if rating == Rating.GOOD:
        if step + 1 >= len(steps):
            return graduate
        return StepOutcome(state=state, step=step + 1, delay=steps[step + 1])

    return graduate
