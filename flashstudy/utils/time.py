from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from ..config import settings


def study_tz() -> ZoneInfo:
    return ZoneInfo(settings.study_timezone)


def utcnow() -> datetime:
    """Naive UTC "now"; every DateTime column in the schema stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def study_date(at: datetime) -> date:
    """Calendar date of a naive-UTC timestamp in the study timezone."""
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    return at.astimezone(study_tz()).date()


def study_today() -> date:
    return study_date(utcnow())


def study_day_bounds(d: date) -> tuple[datetime, datetime]:
    """
    Returns [start, end) bounds of a study-timezone date as naive UTC datetimes.
    """
    start = datetime.combine(d, time.min, tzinfo=study_tz())
    end = start + timedelta(days=1)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )
