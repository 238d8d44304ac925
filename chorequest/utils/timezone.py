"""
Timezone utilities for ChoreQuest.

Timestamps are stored as naive UTC datetimes (the database convention).
Calendar-day logic such as streaks and reset due dates needs the household's
local timezone, taken from the TZ environment variable.
"""

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def get_timezone() -> ZoneInfo:
    """Get the configured timezone from environment.

    Returns:
        ZoneInfo for the configured timezone, defaults to UTC
    """
    tz_name = os.environ.get('TZ', 'UTC')
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo('UTC')


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local_date(value: datetime, tz: ZoneInfo) -> date:
    """Calendar day of a stored timestamp in the given timezone."""
    return as_utc(value).astimezone(tz).date()


def utc_now() -> datetime:
    """Get the current time as a naive UTC datetime.

    Use this for storing timestamps in the database.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
