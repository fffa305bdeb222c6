"""
FSRS Constants and Parameters

Enumerations and fixed numeric bounds for the scheduling engine.

The default weight vector is the published FSRS-6 default parameter set
(21 weights). It is data, not logic: the update formulas in ltm_updates and
stm_updates index into whatever vector the active SchedulerParameters carries.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum, IntEnum

from cards.errors import InvalidCardError


# ---- Ratings ----

class Rating(IntEnum):
    """Learner's self-assessed quality of recall."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently

    @property
    def label(self) -> str:
        """Wire/log label ("Again", "Hard", "Good", "Easy")."""
        return self.name.capitalize()

    @classmethod
    def from_label(cls, value: "str | int | Rating") -> "Rating":
        """
        Parse a rating from its label, its name or its numeric value.

        Raises:
            InvalidCardError: If the value is not one of the four ratings
        """
        if isinstance(value, Rating):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        elif isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise InvalidCardError(
            f"rating must be one of: Again, Hard, Good, Easy (got {value!r})"
        )


# ---- Card enums ----

class CardState(str, Enum):
    """Memory state: selects which update branch applies."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class CardStatus(str, Enum):
    """Lifecycle status: whether the card takes part in review at all."""
    TRIAGING = "triaging"
    ACTIVE = "active"
    SUSPENDED = "suspended"


# ---- Global Constants ----

S_MIN = 0.001    # Minimum stability (days)
D_MIN = 1.0      # Minimum difficulty
D_MAX = 10.0     # Maximum difficulty

SECONDS_PER_DAY = 86400.0
SHORT_TERM_THRESHOLD_DAYS = 1.0  # Reviews closer than this use the same-day formula


# ---- Default Parameters ----

DESIRED_RETENTION = 0.9
MAXIMUM_INTERVAL = 36500  # days

LEARNING_STEPS = (timedelta(minutes=1), timedelta(minutes=10))
RELEARNING_STEPS = (timedelta(minutes=10),)

# FSRS-6 default weights
#   w[0-3]   initial stability for Again/Hard/Good/Easy
#   w[4-5]   initial difficulty
#   w[6]     difficulty delta per rating step
#   w[7]     difficulty mean reversion
#   w[8-10]  stability growth after recall
#   w[11-14] stability after a lapse
#   w[15]    hard penalty
#   w[16]    easy bonus
#   w[17-19] short-term (same-day) stability
#   w[20]    forgetting-curve decay
DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.212,
    1.2931,
    2.3065,
    8.2956,
    6.4133,
    0.8334,
    3.0194,
    0.001,
    1.8722,
    0.1666,
    0.796,
    1.4835,
    0.0614,
    0.2629,
    1.6483,
    0.6014,
    1.8729,
    0.5425,
    0.0912,
    0.0658,
    0.1542,
)

WEIGHT_COUNT = len(DEFAULT_WEIGHTS)
