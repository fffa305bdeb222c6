"""
Due queue and badge counters.

Read-only queries over a set of card snapshots. The SQL provider answers the
same questions in SQL; these functions define the semantics and serve
in-memory callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from cards.card import Card
from cards.fsrs.constants import CardStatus
from cards.fsrs.memory_state import as_utc


@dataclass(frozen=True)
class Upcoming:
    """Active cards that are not yet due."""
    count: int
    next_due: Optional[datetime]


@dataclass(frozen=True)
class DueCardsResult:
    """Due cards (earliest first) plus what is coming up next."""
    cards: list[Card]
    upcoming_count: int
    next_due: Optional[datetime]


@dataclass(frozen=True)
class CardCounts:
    """Badge counts: cards awaiting triage and cards due now."""
    new: int
    due: int


def _queue_key(card: Card) -> tuple[datetime, str]:
    # Ties on `due` break by id so repeated calls return the same order
    return (as_utc(card.due), card.id)


def due_cards(cards: Iterable[Card], now: datetime) -> list[Card]:
    """
    Active cards with due <= now, earliest due first.

    Triaging and suspended cards are never included, whatever their due.
    """
    now = as_utc(now)
    due = [c for c in cards if c.is_due_candidate and as_utc(c.due) <= now]
    return sorted(due, key=_queue_key)


def upcoming(cards: Iterable[Card], now: datetime) -> Upcoming:
    """Count and earliest due among active cards with due > now."""
    now = as_utc(now)
    pending = [as_utc(c.due) for c in cards if c.is_due_candidate and as_utc(c.due) > now]
    return Upcoming(count=len(pending), next_due=min(pending) if pending else None)


def due_queue(cards: Iterable[Card], now: datetime) -> DueCardsResult:
    """
    Due cards and upcoming summary from one snapshot of the card set.

    The input is materialised once so a card lands in exactly one of the two
    groups.
    """
    snapshot = list(cards)
    later = upcoming(snapshot, now)
    return DueCardsResult(
        cards=due_cards(snapshot, now),
        upcoming_count=later.count,
        next_due=later.next_due,
    )


def counts(cards: Iterable[Card], now: datetime) -> CardCounts:
    """Cards awaiting triage and active cards due now."""
    snapshot = list(cards)
    return CardCounts(
        new=sum(1 for c in snapshot if c.status == CardStatus.TRIAGING),
        due=len(due_cards(snapshot, now)),
    )
