"""
Database - Card Database I/O Operations

Handles all database operations for cards and review logs.
Uses SQLAlchemy ORM; SQLite by default, any SQLAlchemy URL via DATABASE_URL.

This module handles ONLY database I/O.
Scheduling logic lives in the scheduler and lifecycle modules.

Every function is scoped by user_id: a card owned by another user behaves
exactly like a missing card.
"""

from __future__ import annotations
import json
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from sqlalchemy import create_engine, event, func, inspect
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from cards import config
from cards.card import EDITABLE_FIELDS, Card, normalize_tags
from cards.due_queue import CardCounts, DueCardsResult, due_queue
from cards.errors import CardNotFoundError, ConcurrentReviewError
from cards.fsrs.constants import CardState, CardStatus, Rating
from cards.fsrs.memory_state import SchedulingSnapshot, as_utc
from cards.fsrs.models import Base, CardRecord, ReviewLogRecord
from cards.review_log import ReviewLog

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


# ---- Engine and sessions ----

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """
    Get the SQLAlchemy engine, creating it on first use.

    SQLite files get their parent directory created and foreign keys turned
    on. Server databases use a small connection pool with pre-ping.
    """
    global _engine, _session_factory
    if _engine is not None:
        return _engine

    db_url = config.get_database_url()
    url = make_url(db_url)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(db_url, echo=False)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            db_url,
            pool_size=5,           # Keep 5 connections open
            max_overflow=10,       # Allow up to 10 extra connections
            pool_pre_ping=True,    # Verify connections before use
            echo=False
        )

    logger.debug("Created engine for %s", url.render_as_string(hide_password=True))
    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    return _engine


def dispose_engine() -> None:
    """Close pooled connections and forget the engine (next call rebuilds it)."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def get_session() -> Session:
    """
    Get a SQLAlchemy session for database operations.

    Returns:
        SQLAlchemy Session instance
    """
    get_engine()
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session that commits on success and rolls back on error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db():
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates missing tables.
    """
    engine = get_engine()
    existing_tables = set(inspect(engine).get_table_names())

    if not {"cards", "review_logs"} <= existing_tables:
        Base.metadata.create_all(engine)
        logger.info("Created card tables")
        return

    card_columns = {col["name"] for col in inspect(engine).get_columns("cards")}
    if "user_id" not in card_columns:
        raise RuntimeError(
            "Card schema missing user_id column. "
            "Please reset or migrate the database to the per-user schema."
        )


def reset_db():
    """
    DANGEROUS: Delete all data and recreate tables.

    All cards and review history will be lost!
    """
    engine = get_engine()
    Base.metadata.drop_all(engine)
    logger.warning("All card tables dropped")
    init_db()


# ---- Row conversion ----

def _dump_tags(tags: Optional[tuple[str, ...]]) -> Optional[str]:
    return json.dumps(list(tags)) if tags else None


def _load_tags(raw: Optional[str]) -> Optional[tuple[str, ...]]:
    return normalize_tags(json.loads(raw)) if raw else None


def _optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _schedule_columns(schedule: SchedulingSnapshot) -> dict[str, Any]:
    return {
        "due": as_utc(schedule.due),
        "stability": schedule.stability,
        "difficulty": schedule.difficulty,
        "elapsed_days": schedule.elapsed_days,
        "scheduled_days": schedule.scheduled_days,
        "learning_steps": schedule.learning_steps,
        "reps": schedule.reps,
        "lapses": schedule.lapses,
        "state": CardState(schedule.state).value,
        "last_review": _optional_utc(schedule.last_review),
    }


def _to_card(record: CardRecord) -> Card:
    return Card(
        id=record.id,
        front=record.front,
        context=record.context,
        source_conversation=record.source_conversation,
        tags=_load_tags(record.tags),
        created_at=as_utc(record.created_at),
        status=CardStatus(record.status),
        schedule=SchedulingSnapshot(
            due=as_utc(record.due),
            stability=record.stability,
            difficulty=record.difficulty,
            elapsed_days=record.elapsed_days,
            scheduled_days=record.scheduled_days,
            learning_steps=record.learning_steps,
            reps=record.reps,
            lapses=record.lapses,
            state=CardState(record.state),
            last_review=_optional_utc(record.last_review),
        ),
    )


def _to_record(card: Card, user_id: str) -> CardRecord:
    return CardRecord(
        id=card.id,
        user_id=user_id,
        front=card.front,
        context=card.context,
        source_conversation=card.source_conversation,
        tags=_dump_tags(card.tags),
        created_at=as_utc(card.created_at),
        status=CardStatus(card.status).value,
        **_schedule_columns(card.schedule),
    )


def _log_to_record(log: ReviewLog) -> ReviewLogRecord:
    return ReviewLogRecord(
        id=log.id,
        card_id=log.card_id,
        rating=Rating(log.rating).label,
        answer=log.answer,
        llm_score=log.llm_score,
        llm_feedback=log.llm_feedback,
        reviewed_at=as_utc(log.reviewed_at),
    )


def _to_review_log(record: ReviewLogRecord) -> ReviewLog:
    return ReviewLog(
        id=record.id,
        card_id=record.card_id,
        rating=Rating.from_label(record.rating),
        answer=record.answer,
        llm_score=record.llm_score,
        llm_feedback=record.llm_feedback,
        reviewed_at=as_utc(record.reviewed_at),
    )


def _owned_cards(session: Session, user_id: str):
    return session.query(CardRecord).filter(CardRecord.user_id == user_id)


def _find_record(session: Session, card_id: str, user_id: str) -> Optional[CardRecord]:
    return _owned_cards(session, user_id).filter(CardRecord.id == card_id).first()


# ---- Cards ----

def create_cards(cards: list[Card], user_id: str) -> list[Card]:
    """
    Insert cards in a single transaction.

    Args:
        cards: Cards built by lifecycle.create
        user_id: Owner of the new cards

    Returns:
        The inserted cards
    """
    if not cards:
        return []

    with session_scope() as session:
        session.add_all([_to_record(card, user_id) for card in cards])

    logger.info("Created %d card(s) for user %s", len(cards), user_id)
    return list(cards)


def get_card_by_id(card_id: str, user_id: str) -> Optional[Card]:
    """
    Load a card.

    Returns:
        Card if found for this user, None otherwise
    """
    session = get_session()
    try:
        record = _find_record(session, card_id, user_id)
        return _to_card(record) if record is not None else None
    finally:
        session.close()


def list_cards(user_id: str, status: Optional[CardStatus] = None) -> list[Card]:
    """
    List a user's cards, newest first.

    Args:
        user_id: Owner
        status: Only cards with this status (all cards if None)
    """
    session = get_session()
    try:
        query = _owned_cards(session, user_id)
        if status is not None:
            query = query.filter(CardRecord.status == CardStatus(status).value)
        records = query.order_by(CardRecord.created_at.desc(), CardRecord.id).all()
        return [_to_card(r) for r in records]
    finally:
        session.close()


def get_due_cards(user_id: str, now: datetime) -> DueCardsResult:
    """
    Active cards due at `now` (earliest first) plus the upcoming summary.

    Both halves are computed from one query so a card is counted in exactly
    one of them.
    """
    session = get_session()
    try:
        records = (
            _owned_cards(session, user_id)
            .filter(CardRecord.status == CardStatus.ACTIVE.value)
            .order_by(CardRecord.due, CardRecord.id)
            .all()
        )
        return due_queue([_to_card(r) for r in records], now)
    finally:
        session.close()


def get_counts(user_id: str, now: datetime) -> CardCounts:
    """
    Badge counts: cards awaiting triage and active cards due now.
    """
    session = get_session()
    try:
        new_count = (
            session.query(func.count(CardRecord.id))
            .filter(
                CardRecord.user_id == user_id,
                CardRecord.status == CardStatus.TRIAGING.value,
            )
            .scalar()
        )
        due_count = (
            session.query(func.count(CardRecord.id))
            .filter(
                CardRecord.user_id == user_id,
                CardRecord.status == CardStatus.ACTIVE.value,
                CardRecord.due <= as_utc(now),
            )
            .scalar()
        )
        return CardCounts(new=new_count or 0, due=due_count or 0)
    finally:
        session.close()


def edit_card(card_id: str, user_id: str, fields: Mapping[str, Any]) -> Optional[Card]:
    """
    Write content fields and/or status.

    Fields outside front/context/source_conversation/tags/status are
    ignored.

    Returns:
        Updated card, or None if not found
    """
    with session_scope() as session:
        record = _find_record(session, card_id, user_id)
        if record is None:
            return None

        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                logger.debug("Ignoring non-editable field %s for card %s", key, card_id)
                continue
            if key == "tags":
                value = _dump_tags(normalize_tags(value))
            elif key == "status":
                value = CardStatus(value).value
            setattr(record, key, value)

        session.flush()
        return _to_card(record)


def _write_schedule(
    session: Session,
    card_id: str,
    user_id: str,
    schedule: SchedulingSnapshot,
    expected_reps: Optional[int]
) -> Optional[CardRecord]:
    query = _owned_cards(session, user_id).filter(CardRecord.id == card_id)
    if expected_reps is not None:
        query = query.filter(CardRecord.reps == expected_reps)

    updated = query.update(_schedule_columns(schedule), synchronize_session=False)
    if updated == 0:
        if _find_record(session, card_id, user_id) is None:
            return None
        raise ConcurrentReviewError(card_id, expected_reps)

    session.expire_all()
    return _find_record(session, card_id, user_id)


def update_schedule(
    card_id: str,
    user_id: str,
    schedule: SchedulingSnapshot,
    expected_reps: Optional[int] = None
) -> Optional[Card]:
    """
    Write scheduling fields.

    Args:
        card_id: Card to update
        user_id: Owner
        schedule: New scheduling snapshot
        expected_reps: If given, only write when the stored reps still
            match (compare-and-swap)

    Returns:
        Updated card, or None if not found

    Raises:
        ConcurrentReviewError: If expected_reps no longer matches
    """
    with session_scope() as session:
        record = _write_schedule(session, card_id, user_id, schedule, expected_reps)
        return _to_card(record) if record is not None else None


def delete_card(card_id: str, user_id: str) -> bool:
    """
    Delete a card and all of its review logs.

    Returns:
        True if a card was deleted
    """
    with session_scope() as session:
        record = _find_record(session, card_id, user_id)
        if record is None:
            return False

        removed_logs = (
            session.query(ReviewLogRecord)
            .filter(ReviewLogRecord.card_id == card_id)
            .delete(synchronize_session=False)
        )
        session.query(CardRecord).filter(CardRecord.id == card_id).delete(
            synchronize_session=False
        )

    logger.info("Deleted card %s (%d review log(s))", card_id, removed_logs)
    return True


# ---- Review logs ----

def create_review_log(log: ReviewLog, user_id: str) -> None:
    """
    Append a review log entry.

    Raises:
        CardNotFoundError: If the referenced card does not exist for this user
    """
    with session_scope() as session:
        if _find_record(session, log.card_id, user_id) is None:
            raise CardNotFoundError(log.card_id)
        session.add(_log_to_record(log))


def apply_review(
    card_id: str,
    user_id: str,
    schedule: SchedulingSnapshot,
    log: ReviewLog,
    expected_reps: int
) -> Optional[Card]:
    """
    Write a review's schedule and its log entry in one transaction.

    Returns:
        Updated card, or None if not found (nothing is written)

    Raises:
        ConcurrentReviewError: If the card was reviewed since it was read
    """
    with session_scope() as session:
        record = _write_schedule(session, card_id, user_id, schedule, expected_reps)
        if record is None:
            return None
        session.add(_log_to_record(log))
        session.flush()
        return _to_card(record)


def get_review_logs(card_id: str, user_id: str) -> list[ReviewLog]:
    """
    Review history of a card, oldest first.
    """
    session = get_session()
    try:
        records = (
            session.query(ReviewLogRecord)
            .join(CardRecord, CardRecord.id == ReviewLogRecord.card_id)
            .filter(
                ReviewLogRecord.card_id == card_id,
                CardRecord.user_id == user_id,
            )
            .order_by(ReviewLogRecord.reviewed_at, ReviewLogRecord.id)
            .all()
        )
        return [_to_review_log(r) for r in records]
    finally:
        session.close()
