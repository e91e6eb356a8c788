from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date
from typing import Optional, List

from .models import FlashcardSetType, ProgressStatus


# ----------------- USER SECTION -----------------

class RegisterIn(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=64)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ----------------- FLASHCARD SET SECTION -----------------

class FlashcardSetCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    level: Optional[str] = Field(default=None, max_length=50)


class FlashcardSetUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    level: Optional[str] = Field(default=None, max_length=50)


class FlashcardSetOut(BaseModel):
    id: int
    owner_id: int
    title: str
    description: Optional[str] = None
    level: Optional[str] = None
    set_type: FlashcardSetType
    created_at: datetime
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ----------------- CARD SECTION -----------------

class FlashcardCreate(BaseModel):
    front_text: str = Field(min_length=1, max_length=255)
    back_text: str = Field(min_length=1, max_length=255)
    reading: Optional[str] = Field(default=None, max_length=255)
    example_sentence: Optional[str] = Field(default=None, max_length=1000)
    order_index: Optional[int] = None


class FlashcardUpdate(BaseModel):
    front_text: Optional[str] = Field(default=None, min_length=1, max_length=255)
    back_text: Optional[str] = Field(default=None, min_length=1, max_length=255)
    reading: Optional[str] = Field(default=None, max_length=255)
    example_sentence: Optional[str] = Field(default=None, max_length=1000)
    order_index: Optional[int] = None


class FlashcardOut(BaseModel):
    id: int
    set_id: int
    front_text: str
    back_text: str
    reading: Optional[str] = None
    example_sentence: Optional[str] = None
    order_index: Optional[int] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ----------------- STUDY / PROGRESS -----------------

class ProgressUpdateIn(BaseModel):
    status: ProgressStatus


class ProgressOut(BaseModel):
    """Read-only view of a persisted progress record."""

    id: int
    user_id: int
    flashcard_id: int
    status: ProgressStatus
    review_count: int
    last_reviewed_at: Optional[datetime] = None
    mastered_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class ReviewCardIn(BaseModel):
    mastered: bool = False


class ReviewCardOut(BaseModel):
    review_count: int
    mastered: bool


class ProgressStateOut(BaseModel):
    flashcard_id: int
    studied: bool
    progress: Optional[ProgressOut] = None


class LearningStreakOut(BaseModel):
    current_streak_days: int
    longest_streak_days: int
    last_learning_date: Optional[date] = None


class FlashcardDashboardOut(BaseModel):
    total_sets: int
    total_cards: int
    reviewed_today: int
    streak_days: int
