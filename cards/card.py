"""
Card domain model.

A card is owned by the persistence layer; the core only ever sees immutable
snapshots and hands back new ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from cards.fsrs.constants import CardState, CardStatus
from cards.fsrs.memory_state import SchedulingSnapshot


# Fields a user may change outside of a review
CONTENT_FIELDS = frozenset({"front", "context", "source_conversation", "tags"})
EDITABLE_FIELDS = CONTENT_FIELDS | {"status"}

# Fields owned by the memory model
SCHEDULING_FIELDS = frozenset({
    "due",
    "stability",
    "difficulty",
    "elapsed_days",
    "scheduled_days",
    "learning_steps",
    "reps",
    "lapses",
    "state",
    "last_review",
})


@dataclass(frozen=True)
class Card:
    """
    Flashcard snapshot.

    `status` decides whether the card takes part in review at all;
    `schedule.state` decides which memory-update branch applies and is only
    meaningful while the card is active.
    """
    id: str
    front: str
    created_at: datetime
    schedule: SchedulingSnapshot
    status: CardStatus = CardStatus.TRIAGING
    context: Optional[str] = None
    source_conversation: Optional[str] = None
    tags: Optional[tuple[str, ...]] = field(default=None)

    @property
    def due(self) -> datetime:
        return self.schedule.due

    @property
    def state(self) -> CardState:
        return self.schedule.state

    @property
    def reps(self) -> int:
        return self.schedule.reps

    @property
    def lapses(self) -> int:
        return self.schedule.lapses

    @property
    def is_due_candidate(self) -> bool:
        """Only active cards are ever returned by the due queue."""
        return self.status == CardStatus.ACTIVE


def normalize_tags(tags) -> Optional[tuple[str, ...]]:
    """
    Normalise a tag collection to a tuple of stripped, de-duplicated strings.

    Order of first appearance is kept. Empty input becomes None.
    """
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = [tags]

    seen: list[str] = []
    for tag in tags:
        cleaned = str(tag).strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return tuple(seen) if seen else None
