# File: src/fuelledger/utils/datetime.py
"""Timezone-aware datetime utilities for station local time."""

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# Pakistan Standard Time: UTC+5 year-round (no DST)
APP_TIMEZONE = ZoneInfo(os.getenv("APP_TIMEZONE", "Asia/Karachi"))


def now_local() -> datetime:
    """Get current datetime in station timezone."""
    return datetime.now(APP_TIMEZONE)


def now_local_naive() -> datetime:
    """Station wall-clock time without tzinfo, used for Transaction.occurred_at."""
    return now_local().replace(tzinfo=None)


def today_local() -> date:
    """Get today's date in station timezone."""
    return now_local().date()


def now_utc() -> datetime:
    """Get current UTC datetime as NAIVE for database storage."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) wall-clock range covering one local date."""
    start = datetime.combine(day, datetime.min.time())
    end = datetime.combine(date.fromordinal(day.toordinal() + 1), datetime.min.time())
    return start, end


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to station wall-clock time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(APP_TIMEZONE).replace(tzinfo=None)
