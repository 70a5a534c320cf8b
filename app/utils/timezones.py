# app/utils/timezones.py
from datetime import datetime, time, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    # All timestamps are stored as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_bounds_utc(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Start and end of the UTC day containing `now`, as naive datetimes."""
    now = now or utcnow()
    start = datetime.combine(now.date(), time.min)
    end = datetime.combine(now.date(), time.max)
    return start, end
