from __future__ import annotations

from datetime import date, datetime, timedelta

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud, models
from ..utils.time import study_date, study_today

logger = structlog.get_logger(__name__)

STREAK_LOOKBACK_DAYS = 400


class SqlActivityRecorder:
    """Counts learner activity per study-timezone calendar day."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def record(self, user_id: int, at: datetime) -> None:
        day = study_date(at)

        if not self._bump(user_id, day):
            self.db.add(models.DailyLearning(user_id=user_id, learning_date=day, activity_count=1))
            try:
                self.db.commit()
            except IntegrityError:
                # another request created today's row first
                self.db.rollback()
                self._bump(user_id, day)

        logger.debug("activity_recorded", user_id=user_id, learning_date=day.isoformat())

    def _bump(self, user_id: int, day: date) -> bool:
        updated = (
            self.db.query(models.DailyLearning)
            .filter(
                models.DailyLearning.user_id == user_id,
                models.DailyLearning.learning_date == day,
            )
            .update(
                {models.DailyLearning.activity_count: models.DailyLearning.activity_count + 1},
                synchronize_session=False,
            )
        )
        if updated:
            self.db.commit()
        return bool(updated)


def best_streak(active_dates: set[date]) -> int:
    if not active_dates:
        return 0
    best = 0
    for d in sorted(active_dates):
        # only count from the first day of each run
        if (d - timedelta(days=1)) not in active_dates:
            run = 1
            nxt = d + timedelta(days=1)
            while nxt in active_dates:
                run += 1
                nxt += timedelta(days=1)
            best = max(best, run)
    return best


def current_streak(active_dates: set[date], today: date) -> int:
    # streak can end today if today is active, else end yesterday if active
    end = today if today in active_dates else (today - timedelta(days=1))
    cur = 0
    d = end
    while d in active_dates:
        cur += 1
        d = d - timedelta(days=1)
    return cur


def get_learning_streak(db: Session, user_id: int, today: date | None = None) -> dict:
    if today is None:
        today = study_today()

    active = crud.list_active_days(
        db, user_id, today - timedelta(days=STREAK_LOOKBACK_DAYS), today
    )
    return {
        "current_streak_days": current_streak(active, today),
        "longest_streak_days": best_streak(active),
        "last_learning_date": crud.get_last_learning_date(db, user_id),
    }
