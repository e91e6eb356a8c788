from __future__ import annotations

from sqlalchemy.orm import Session

from .. import crud
from ..utils.time import study_day_bounds, study_today
from .activity import get_learning_streak


def get_dashboard(db: Session, user_id: int, level: str | None = None) -> dict:
    level = (level or "").strip() or None
    today = study_today()
    start, end = study_day_bounds(today)

    return {
        "total_sets": crud.count_user_sets(db, user_id, level=level),
        "total_cards": crud.count_user_cards(db, user_id, level=level),
        "reviewed_today": crud.count_reviewed_between(db, user_id, start, end, level=level),
        "streak_days": get_learning_streak(db, user_id, today=today)["current_streak_days"],
    }
