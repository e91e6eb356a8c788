from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user
from .. import schemas
from ..services.activity import get_learning_streak
from ..services.dashboard import get_dashboard

router = APIRouter(prefix="/flashcards", tags=["dashboard"])


@router.get("/dashboard/me", response_model=schemas.FlashcardDashboardOut)
def my_dashboard(
    level: Optional[str] = Query(default=None, max_length=50),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_dashboard(db, current_user.id, level=level)


@router.get("/streak/me", response_model=schemas.LearningStreakOut)
def my_streak(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_learning_streak(db, current_user.id)
