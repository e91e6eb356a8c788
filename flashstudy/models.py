from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # relationships
    flashcard_sets = relationship("FlashcardSet", back_populates="owner", cascade="all, delete-orphan")


class FlashcardSetType(enum.Enum):
    PERSONAL = "PERSONAL"
    COURSE_VOCAB = "COURSE_VOCAB"


class FlashcardSet(Base):
    __tablename__ = "flashcard_sets"

    id = Column(Integer, primary_key=True, index=True)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner = relationship("User", back_populates="flashcard_sets")

    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    level = Column(String(50), nullable=True, index=True)  # N5, B1, ...

    set_type = Column(Enum(FlashcardSetType), default=FlashcardSetType.PERSONAL, nullable=False)

    # soft delete: progress rows keep referencing cards of deleted sets
    deleted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cards = relationship("Flashcard", back_populates="flashcard_set", cascade="all, delete-orphan")


class Flashcard(Base):
    __tablename__ = "flashcards"

    id = Column(Integer, primary_key=True, index=True)

    set_id = Column(Integer, ForeignKey("flashcard_sets.id"), nullable=False, index=True)
    flashcard_set = relationship("FlashcardSet", back_populates="cards")

    front_text = Column(String(255), nullable=False)
    back_text = Column(String(255), nullable=False)
    reading = Column(String(255), nullable=True)
    example_sentence = Column(String(1000), nullable=True)
    order_index = Column(Integer, nullable=True)

    deleted = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProgressStatus(enum.Enum):
    NEW = "NEW"
    LEARNING = "LEARNING"
    MASTERED = "MASTERED"


class FlashcardProgress(Base):
    """
    Per-user study state of a single flashcard.

    ``version`` guards every UPDATE (optimistic concurrency); a stale write
    raises ``StaleDataError`` at flush time.
    """

    __tablename__ = "flashcard_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    flashcard_id = Column(Integer, ForeignKey("flashcards.id"), nullable=False, index=True)

    status = Column(Enum(ProgressStatus), default=ProgressStatus.NEW, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
    last_reviewed_at = Column(DateTime, nullable=True, index=True)
    mastered_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    flashcard = relationship("Flashcard")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("user_id", "flashcard_id", name="uq_flashcard_progress_user_card"),
    )

    @validates("mastered_at")
    def _mastered_at_write_once(self, key, value):
        current = getattr(self, key)
        if current is not None and value != current:
            raise ValueError("mastered_at is already set")
        return value


class DailyLearning(Base):
    __tablename__ = "daily_learning"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    learning_date = Column(Date, nullable=False, index=True)
    activity_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "learning_date", name="uq_daily_learning_user_date"),
        Index("ix_daily_learning_user_date", "user_id", "learning_date"),
    )
