"""Local wall-clock helpers.

Day boundaries follow the machine's local timezone. Naive datetimes
are taken to already be local time.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional


def to_local(dt: datetime) -> datetime:
    """Aware datetime in the local timezone."""
    return dt.astimezone()


def now_local(now: Optional[datetime] = None) -> datetime:
    return to_local(now) if now is not None else datetime.now().astimezone()


def day_start(day: date) -> datetime:
    """Local midnight at the start of a calendar day."""
    return datetime.combine(day, time.min).astimezone()


def local_midnight(dt: datetime) -> datetime:
    return day_start(to_local(dt).date())


def trailing_days(days: int, now: Optional[datetime] = None) -> list[tuple[datetime, datetime]]:
    """[start, end) bounds for the last `days` local days, oldest first, today last."""
    today = now_local(now).date()
    bounds = []
    for i in range(days - 1, -1, -1):
        day = today - timedelta(days=i)
        bounds.append((day_start(day), day_start(day + timedelta(days=1))))
    return bounds
