"""
Long-Term Memory (LTM) Updates

Implements stability and difficulty updates for reviews spaced at least a
day apart, plus the interval that projects retrievability down to the
desired retention.

Key principles:
- Spaced, effortful success produces the largest stability gains
- Lapses reset stability toward a post-lapse value, never above the prior one
- Difficulty moves by rating with linear damping and mean reversion
"""

from __future__ import annotations
import math

from cards.fsrs.constants import D_MAX, D_MIN, Rating, S_MIN
from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters


def clamp_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def clamp_stability(stability: float) -> float:
    return max(S_MIN, stability)


def initial_stability(
    rating: Rating,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Stability after the very first review.

    Formula: S0 = w[rating - 1]
    """
    return clamp_stability(parameters.weights[rating - 1])


def initial_difficulty(
    rating: Rating,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS,
    clamp: bool = True
) -> float:
    """
    Difficulty after the very first review.

    Formula: D0 = w[4] - exp(w[5] * (rating - 1)) + 1

    Args:
        rating: First rating given to the card
        clamp: Clip the result to [1, 10]. Mean reversion uses the
            unclamped D0(Easy) as its target.
    """
    w = parameters.weights
    difficulty = w[4] - math.exp(w[5] * (rating - 1)) + 1
    return clamp_difficulty(difficulty) if clamp else difficulty


def update_difficulty(
    difficulty: float,
    rating: Rating,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update difficulty based on the rating.

    Formula:
        delta = -w[6] * (rating - 3)
        D' = D + delta * (10 - D) / 9            (linear damping)
        D'' = w[7] * D0(Easy) + (1 - w[7]) * D'  (mean reversion)

    Conceptually:
    - Again/Hard push difficulty up, Easy pulls it down
    - Changes shrink as difficulty approaches the ceiling

    Returns:
        New difficulty value (clipped to [1, 10])
    """
    w = parameters.weights
    delta = -w[6] * (rating - 3)
    damped = difficulty + delta * (10.0 - difficulty) / 9.0

    target = initial_difficulty(Rating.EASY, parameters, clamp=False)
    reverted = w[7] * target + (1.0 - w[7]) * damped

    return clamp_difficulty(reverted)


def update_stability_on_success(
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update stability after successful recall (Hard/Good/Easy).

    Formula:
        S' = S * (1 + e^w[8] * (11 - D) * S^-w[9] * (e^(w[10] * (1 - R)) - 1)
                  * hard_penalty * easy_bonus)

    Where:
        - (1 - R) rewards risky (well-spaced) success
        - (11 - D) reduces gains for difficult items
        - hard_penalty = w[15] for Hard, easy_bonus = w[16] for Easy

    Returns:
        New stability value (never below the current one)
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN ratings")

    w = parameters.weights
    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0

    growth = (
        math.exp(w[8])
        * (11.0 - difficulty)
        * stability ** -w[9]
        * (math.exp(w[10] * (1.0 - retrievability)) - 1.0)
        * hard_penalty
        * easy_bonus
    )

    return clamp_stability(stability * (1.0 + growth))


def update_stability_on_failure(
    stability: float,
    difficulty: float,
    retrievability: float,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """
    Update stability after a lapse (Again).

    Formula:
        long  = w[11] * D^-w[12] * ((S + 1)^w[13] - 1) * e^(w[14] * (1 - R))
        short = S / e^(w[17] * w[18])
        S'    = min(long, short)

    Returns:
        New stability value (reduced)
    """
    w = parameters.weights
    long_term = (
        w[11]
        * difficulty ** -w[12]
        * ((stability + 1.0) ** w[13] - 1.0)
        * math.exp(w[14] * (1.0 - retrievability))
    )
    short_term = stability / math.exp(w[17] * w[18])

    return clamp_stability(min(long_term, short_term))


def apply_ltm_update(
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> tuple[float, float]:
    """
    Apply LTM update rules to get new S and D.

    Stability is updated from the prior difficulty; the returned difficulty
    is the post-review value.

    Returns:
        (new_stability, new_difficulty)
    """
    if rating == Rating.AGAIN:
        new_stability = update_stability_on_failure(
            stability, difficulty, retrievability, parameters
        )
    else:
        new_stability = update_stability_on_success(
            stability, difficulty, retrievability, rating, parameters
        )

    new_difficulty = update_difficulty(difficulty, rating, parameters)

    return new_stability, new_difficulty


def next_interval(
    stability: float,
    parameters: SchedulerParameters = DEFAULT_PARAMETERS
) -> int:
    """
    Days until retrievability falls to the desired retention.

    Formula: I = S / factor * (retention^(1/decay) - 1)

    Returns:
        Whole days, between 1 and parameters.maximum_interval
    """
    stability = clamp_stability(stability)
    interval = (
        stability
        / parameters.factor
        * (parameters.desired_retention ** (1.0 / parameters.decay) - 1.0)
    )
    return max(1, min(parameters.maximum_interval, round(interval)))
