"""Reading streak calculation."""

from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy import select

from ..db.models import PageLog
from ..db.sqlite import Database

DEFAULT_MAX_DAYS = 365


def streak_from_dates(logged_days: Iterable[date], today: date, max_days: int = DEFAULT_MAX_DAYS) -> int:
    """Count consecutive logged days walking back from today.

    A day without a log ends the streak, except today: an unlogged today is
    skipped so the streak is not lost before the day is over.

    Args:
        logged_days: Days with at least one page log
        today: Day to start from
        max_days: Longest streak reported

    Returns:
        Streak length in days
    """
    days = set(logged_days)
    day = today
    if day not in days:
        day -= timedelta(days=1)

    streak = 0
    while day in days and streak < max_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def reading_streak(
    db: Database, today: Optional[date] = None, max_days: int = DEFAULT_MAX_DAYS
) -> int:
    """Current reading streak from the page logs in the database."""
    today = today or date.today()
    window_start = today - timedelta(days=max_days + 1)
    with db.get_session() as s:
        stmt = (
            select(PageLog.read_date)
            .where(PageLog.read_date >= window_start, PageLog.read_date <= today)
            .distinct()
        )
        logged_days = set(s.execute(stmt).scalars())
    return streak_from_dates(logged_days, today, max_days)
