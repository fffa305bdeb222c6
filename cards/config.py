"""
Environment configuration.

Values come from the process environment, with a `.env` file loaded on
import. Every helper reads the environment at call time so tests can
monkeypatch variables.

Variables:
    DATABASE_URL            SQLAlchemy URL (default: sqlite:///data/cards.sqlite)
    DEFAULT_USER_ID         Owner used when none is given (default: "local")
    LOG_LEVEL               Logging level name (default: INFO)
    OPENAI_API_KEY          Key for the answer grader
    GRADER_MODEL            Model used by the answer grader
    FSRS_DESIRED_RETENTION  Target recall probability, e.g. 0.9
    FSRS_LEARNING_STEPS     Comma list of durations, e.g. "1m,10m"
    FSRS_RELEARNING_STEPS   Comma list of durations, e.g. "10m"
    FSRS_MAXIMUM_INTERVAL   Longest review interval in days
    FSRS_WEIGHTS            Comma list of 21 weights
"""

from __future__ import annotations

import logging
import os
import re
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv

from cards.fsrs.parameters import DEFAULT_PARAMETERS, SchedulerParameters

load_dotenv()


DEFAULT_DATABASE_URL = "sqlite:///data/cards.sqlite"
DEFAULT_GRADER_MODEL = "gpt-4o-mini"

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd])\s*$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_default_user_id() -> str:
    """Get default user id for scoping card data."""
    return os.getenv("DEFAULT_USER_ID", "local")


def get_grader_model() -> str:
    return os.getenv("GRADER_MODEL", DEFAULT_GRADER_MODEL)


def get_openai_api_key() -> Optional[str]:
    return os.getenv("OPENAI_API_KEY")


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging from LOG_LEVEL (or an explicit level)."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_duration(text: str) -> timedelta:
    """
    Parse a short duration such as "90s", "10m", "1.5h" or "2d".

    Raises:
        ValueError: If the text is not a number followed by s/m/h/d
    """
    match = _DURATION_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid duration {text!r} (expected e.g. '10m', '1h', '1d')")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: float(amount)})


def parse_steps(text: str) -> tuple[timedelta, ...]:
    """Parse a comma-separated step ladder. An empty string means no steps."""
    return tuple(parse_duration(part) for part in text.split(",") if part.strip())


def load_scheduler_parameters() -> SchedulerParameters:
    """
    Build SchedulerParameters from FSRS_* variables.

    Unset variables keep the published defaults.
    """
    defaults = DEFAULT_PARAMETERS

    weights = defaults.weights
    raw_weights = os.getenv("FSRS_WEIGHTS")
    if raw_weights:
        weights = tuple(float(w) for w in raw_weights.split(",") if w.strip())

    retention = os.getenv("FSRS_DESIRED_RETENTION")
    learning = os.getenv("FSRS_LEARNING_STEPS")
    relearning = os.getenv("FSRS_RELEARNING_STEPS")
    maximum = os.getenv("FSRS_MAXIMUM_INTERVAL")

    return SchedulerParameters(
        weights=weights,
        desired_retention=float(retention) if retention else defaults.desired_retention,
        learning_steps=parse_steps(learning) if learning is not None else defaults.learning_steps,
        relearning_steps=parse_steps(relearning) if relearning is not None else defaults.relearning_steps,
        maximum_interval=int(maximum) if maximum else defaults.maximum_interval,
    )
