"""
Recurrence utilities for resetting completed tasks.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from dateutil.relativedelta import relativedelta

# Quarter starts on which seasonal tasks reset
SEASON_START_MONTHS = (1, 4, 7, 10)

END_OF_DAY = time(23, 59, 59, 999000)


def next_due_date(category: str, today: date) -> date:
    """
    Calculate the next due date for a task category.

    Args:
        category: 'daily', 'weekly', 'monthly' or 'seasonal'
        today: Local date the reset runs on

    Returns:
        The calendar day the task is next due
    """
    if category == 'daily':
        return today + timedelta(days=1)
    elif category == 'weekly':
        return today + timedelta(days=7)
    elif category == 'monthly':
        return today + relativedelta(months=1)
    elif category == 'seasonal':
        return today + relativedelta(months=3)
    raise ValueError(f"Unknown task category: {category}")


def end_of_day_utc(day: date, tz: tzinfo) -> datetime:
    """Last millisecond of a local day, as a naive UTC datetime for storage."""
    local_end = datetime.combine(day, END_OF_DAY, tzinfo=tz)
    return local_end.astimezone(timezone.utc).replace(tzinfo=None)

