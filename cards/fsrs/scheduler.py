"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling (no database calls).

Main workflow:
1. Measure elapsed time since the previous review (clamped at 0)
2. Calculate retrievability from the current stability
3. Apply the update branch for the card's state
4. Pick the next interval (step ladder or retention interval)
5. Return a new snapshot

This module handles ONLY the algorithm logic.
Database I/O is handled by the database module.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from cards.fsrs import ltm_updates, stm_updates
from cards.fsrs.constants import CardState, Rating, SHORT_TERM_THRESHOLD_DAYS
from cards.fsrs.memory_state import (
    SchedulingSnapshot,
    as_utc,
    calculate_retrievability,
    days_between,
    utc_now,
)
from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters


def advance(
    snapshot: SchedulingSnapshot,
    rating: Rating | str | int,
    now: Optional[datetime] = None,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> SchedulingSnapshot:
    """
    Process a review and return the card's next scheduling snapshot.

    This is the core FSRS algorithm. It has no side effects and returns the
    same output for the same input. Every state and every rating is valid;
    out-of-range stored values are clamped rather than rejected.

    Args:
        snapshot: Current scheduling snapshot (any state)
        rating: Rating for this review (AGAIN, HARD, GOOD, EASY)
        now: Review instant (defaults to now)
        parameters: Weight vector, retention target and step ladders

    Returns:
        Updated snapshot with reps + 1 and last_review = now
    """
    rating = Rating.from_label(rating)
    now = as_utc(now) if now is not None else utc_now()

    anchor = snapshot.last_review if snapshot.last_review is not None else snapshot.due
    elapsed_days = days_between(anchor, now)
    lapses = snapshot.lapses

    if snapshot.state == CardState.NEW:
        stability = ltm_updates.initial_stability(rating, parameters)
        difficulty = ltm_updates.initial_difficulty(rating, parameters)
        outcome = stm_updates.advance_step(
            CardState.LEARNING, 0, rating, parameters.learning_steps
        )
    else:
        stability, difficulty = _update_memory(snapshot, rating, elapsed_days, parameters)

        if snapshot.state == CardState.REVIEW:
            if rating == Rating.AGAIN:
                lapses += 1
                outcome = _lapse(parameters)
            else:
                outcome = stm_updates.StepOutcome(state=CardState.REVIEW, step=0, delay=None)
        else:
            outcome = stm_updates.advance_step(
                snapshot.state,
                snapshot.learning_steps,
                rating,
                stm_updates.ladder_for(snapshot.state, parameters),
            )

    if outcome.graduated:
        scheduled_days = ltm_updates.next_interval(stability, parameters)
        due = now + timedelta(days=scheduled_days)
    else:
        scheduled_days = 0
        due = now + outcome.delay

    return replace(
        snapshot,
        due=due,
        stability=stability,
        difficulty=difficulty,
        elapsed_days=elapsed_days,
        scheduled_days=scheduled_days,
        learning_steps=outcome.step,
        reps=snapshot.reps + 1,
        lapses=lapses,
        state=outcome.state,
        last_review=now,
    )


def _update_memory(
    snapshot: SchedulingSnapshot,
    rating: Rating,
    elapsed_days: float,
    parameters: SchedulerParameters
) -> tuple[float, float]:
    """
    New (stability, difficulty) for a card that has been reviewed before.

    Same-day reviews use the short-term stability formula; anything spaced a
    day or more goes through the long-term recall/lapse formulas.
    """
    stability = ltm_updates.clamp_stability(snapshot.stability)
    difficulty = ltm_updates.clamp_difficulty(snapshot.difficulty)

    if elapsed_days < SHORT_TERM_THRESHOLD_DAYS:
        return (
            stm_updates.short_term_stability(stability, rating, parameters),
            ltm_updates.update_difficulty(difficulty, rating, parameters),
        )

    retrievability = calculate_retrievability(stability, elapsed_days, parameters)
    return ltm_updates.apply_ltm_update(
        stability, difficulty, retrievability, rating, parameters
    )


def _lapse(parameters: SchedulerParameters) -> stm_updates.StepOutcome:
    """Step outcome for an Again rating on a Review card."""
    steps = parameters.relearning_steps
    return stm_updates.StepOutcome(
        state=CardState.RELEARNING,
        step=0,
        delay=steps[0] if steps else None,
    )
