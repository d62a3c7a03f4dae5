from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(value: datetime) -> Tuple[datetime, datetime]:
    """[midnight, next midnight) of the calendar day containing value."""
    start = datetime(value.year, value.month, value.day)
    return start, start + timedelta(days=1)


def is_fresh(updated_at: Optional[datetime], now: datetime, max_age_seconds: int) -> bool:
    """True when updated_at is set and younger than max_age_seconds."""
    if updated_at is None:
        return False
    return (now - to_naive_utc(updated_at)).total_seconds() < max_age_seconds
