"""
FSRS - Free Spaced Repetition Scheduler

Memory model for the flashcard review engine.

This package implements the FSRS-6 memory model with:
- Power-law forgetting curve: R = (1 + factor * t / S) ^ -w[20]
- Rating-driven state machine: New -> Learning -> Review <-> Relearning
- Short-interval step ladders for learning and relearning
- Swappable parameters (weights, retention, steps, interval cap)

Quick start:
    from cards import fsrs

    # Schedule a review (algorithm only, no DB calls)
    schedule = fsrs.advance(card.schedule, fsrs.Rating.GOOD, now)

    # Database I/O lives in its own module
    from cards.fsrs import database
    database.init_db()
    result = database.get_due_cards(user_id, now)
"""

# Core scheduler API (algorithm logic)
from cards.fsrs.scheduler import advance

# Constants and parameters
from cards.fsrs.constants import (
    Rating,
    CardState,
    CardStatus,
    DEFAULT_WEIGHTS,
    DESIRED_RETENTION,
    S_MIN,
    D_MIN,
    D_MAX,
)
from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters

# Memory state
from cards.fsrs.memory_state import (
    SchedulingSnapshot,
    initialize,
    calculate_retrievability,
    current_retrievability,
)
from cards.fsrs.ltm_updates import next_interval


__all__ = [
    # Core algorithm
    "advance",
    "initialize",
    "next_interval",

    # Enums
    "Rating",
    "CardState",
    "CardStatus",

    # Memory state
    "SchedulingSnapshot",
    "calculate_retrievability",
    "current_retrievability",

    # Parameters
    "SchedulerParameters",
    "DEFAULT_PARAMETERS",
    "DEFAULT_WEIGHTS",
    "DESIRED_RETENTION",
    "S_MIN",
    "D_MIN",
    "D_MAX",
]
