"""Clock helpers.

All timestamps are stored as naive UTC so that SQLite round-trips compare
cleanly with values computed in Python.
"""

from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from gamespace.core.config import settings


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_business_day(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Naive-UTC instant at which the current local business day began.

    Token numbers restart every day, so "today's token 5" means the token
    created after this boundary.
    """
    tz = ZoneInfo(tz_name or settings.timezone)
    now = now or utcnow()
    local_now = now.replace(tzinfo=timezone.utc).astimezone(tz)
    local_midnight = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


def local_date_of(moment: datetime, tz_name: Optional[str] = None) -> date:
    """Local calendar date of a naive-UTC instant."""
    tz = ZoneInfo(tz_name or settings.timezone)
    return moment.replace(tzinfo=timezone.utc).astimezone(tz).date()
