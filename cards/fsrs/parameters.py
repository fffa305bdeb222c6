"""
Scheduler Parameters

Swappable configuration for the memory model: the weight vector, the target
retention, the short-interval step ladders and the interval cap.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta

from cards.fsrs.constants import (
    DEFAULT_WEIGHTS,
    DESIRED_RETENTION,
    LEARNING_STEPS,
    MAXIMUM_INTERVAL,
    RELEARNING_STEPS,
    WEIGHT_COUNT,
)


@dataclass(frozen=True)
class SchedulerParameters:
    """
    Configuration table for the FSRS memory model.

    Attributes:
        weights: FSRS-6 weight vector (21 values)
        desired_retention: Recall probability at which a card becomes due
        learning_steps: Step ladder for new/learning cards
        relearning_steps: Step ladder after a lapse
        maximum_interval: Upper bound on a review interval, in days
    """
    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    desired_retention: float = DESIRED_RETENTION
    learning_steps: tuple[timedelta, ...] = LEARNING_STEPS
    relearning_steps: tuple[timedelta, ...] = RELEARNING_STEPS
    maximum_interval: int = MAXIMUM_INTERVAL

    def __post_init__(self):
        # Normalise list inputs so instances stay hashable
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        object.__setattr__(self, "learning_steps", tuple(self.learning_steps))
        object.__setattr__(self, "relearning_steps", tuple(self.relearning_steps))

        if len(self.weights) != WEIGHT_COUNT:
            raise ValueError(
                f"Expected {WEIGHT_COUNT} weights, got {len(self.weights)}"
            )
        if not all(math.isfinite(w) for w in self.weights):
            raise ValueError("Weights must be finite numbers")
        if self.weights[20] <= 0:
            raise ValueError("Decay weight w[20] must be positive")
        if not 0.0 < self.desired_retention < 1.0:
            raise ValueError("desired_retention must be between 0 and 1 (exclusive)")
        for step in self.learning_steps + self.relearning_steps:
            if step <= timedelta(0):
                raise ValueError(f"Step durations must be positive (got {step})")
        if self.maximum_interval < 1:
            raise ValueError("maximum_interval must be at least 1 day")

    @property
    def decay(self) -> float:
        """Forgetting-curve exponent (negative)."""
        return -self.weights[20]

    @property
    def factor(self) -> float:
        """Curve scale chosen so that R(S, S) = 0.9."""
        return 0.9 ** (1.0 / self.decay) - 1.0


DEFAULT_PARAMETERS = SchedulerParameters()
