"""
SQLAlchemy ORM Models for the card database

Defines CardRecord and ReviewLogRecord tables. Both are scoped by user_id.
Instants are stored as UTC.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class CardRecord(Base):
    """
    Persistent card: content, lifecycle status and scheduling fields.
    """
    __tablename__ = 'cards'

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)

    # Content
    front = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    source_conversation = Column(Text, nullable=True)
    tags = Column(Text, nullable=True)  # JSON array
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Lifecycle
    status = Column(String(20), nullable=False)  # triaging / active / suspended

    # Scheduling (memory model owned)
    due = Column(DateTime(timezone=True), nullable=False)
    stability = Column(Float, nullable=False, default=0.0)
    difficulty = Column(Float, nullable=False, default=0.0)
    elapsed_days = Column(Float, nullable=False, default=0.0)
    scheduled_days = Column(Integer, nullable=False, default=0)
    learning_steps = Column(Integer, nullable=False, default=0)
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    state = Column(String(20), nullable=False)  # new / learning / review / relearning
    last_review = Column(DateTime(timezone=True), nullable=True)

    review_logs = relationship(
        "ReviewLogRecord",
        back_populates="card",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_cards_user_status_due", "user_id", "status", "due"),
    )

    def __repr__(self):
        return f"<CardRecord({self.id}, status={self.status}, state={self.state})>"


class ReviewLogRecord(Base):
    """
    Append-only log entry for a single review of a card.
    """
    __tablename__ = 'review_logs'

    id = Column(String(36), primary_key=True)
    card_id = Column(
        String(36),
        ForeignKey("cards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating = Column(String(10), nullable=False)  # Again / Hard / Good / Easy
    answer = Column(Text, nullable=True)
    llm_score = Column(Float, nullable=True)
    llm_feedback = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=False)

    card = relationship("CardRecord", back_populates="review_logs")

    def __repr__(self):
        return f"<ReviewLogRecord(id={self.id}, card={self.card_id}, rating={self.rating})>"
