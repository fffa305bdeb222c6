"""
Memory State - Scheduling Snapshot and Retrievability

Defines the per-card scheduling snapshot and the forgetting curve.

Key concepts:
- Stability (S): Days until recall probability decays to 90%
- Difficulty (D): How hard the card is to learn (1-10 scale)
- Retrievability (R): Probability of successful recall at time t
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from cards.fsrs.constants import CardState, SECONDS_PER_DAY, S_MIN
from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters


@dataclass(frozen=True)
class SchedulingSnapshot:
    """
    Scheduling fields of a single card.

    Snapshots are immutable; the scheduler returns a new one per review.
    """
    due: datetime
    stability: float = 0.0
    difficulty: float = 0.0
    elapsed_days: float = 0.0  # Time since previous review, in days
    scheduled_days: int = 0  # Interval chosen at the last review
    learning_steps: int = 0  # Index into the active step ladder
    reps: int = 0
    lapses: int = 0
    state: CardState = CardState.NEW
    last_review: Optional[datetime] = None


def as_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to timezone-aware UTC.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """
    Fractional days from start to end, clamped at 0.

    A negative span (clock skew, back-dated submissions) counts as no time
    elapsed.
    """
    delta = as_utc(end) - as_utc(start)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def initialize(now: datetime) -> SchedulingSnapshot:
    """
    Build the scheduling snapshot for a brand-new card.

    Args:
        now: Creation instant; the card is due immediately

    Returns:
        New-state snapshot with every accumulator at zero
    """
    return SchedulingSnapshot(due=as_utc(now))


def calculate_retrievability(
    stability: float,
    elapsed_days: float,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Calculate retrievability using the FSRS-6 power-law forgetting curve.

    Formula: R = (1 + factor * t / S) ^ decay

    Where:
    - t = days since last review
    - S = stability (in days)
    - decay = -w[20], factor = 0.9^(1/decay) - 1 so that R(S) = 0.9

    Args:
        stability: Current stability in days (clamped to S_MIN)
        elapsed_days: Time since last review in days

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0

    stability = max(S_MIN, stability)
    return (1.0 + parameters.factor * elapsed_days / stability) ** parameters.decay


def current_retrievability(
    snapshot: SchedulingSnapshot,
    now: datetime,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Retrievability of a card at `now`.

    Cards that have never been reviewed have nothing to recall yet and
    report 0.
    """
    if snapshot.state == CardState.NEW or snapshot.last_review is None:
        return 0.0
    elapsed = days_between(snapshot.last_review, now)
    return calculate_retrievability(snapshot.stability, elapsed, parameters)
