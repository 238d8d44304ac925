"""Consecutive-day completion streaks."""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable

from chorequest.utils.timezone import to_local_date


@dataclass(frozen=True)
class StreakResult:
    current: int = 0
    longest: int = 0


def calculate_streaks(timestamps: Iterable[datetime], now: datetime, tz: tzinfo) -> StreakResult:
    """
    Compute current and longest streaks of days with at least one completion.

    Days are local calendar days in ``tz``. The current streak is the run
    that reaches today or yesterday; a member who last completed something
    two or more days ago has a current streak of 0.

    Args:
        timestamps: Completion timestamps, any order, duplicates allowed
        now: Reference time for "today"
        tz: Timezone used to find calendar days

    Returns:
        StreakResult(current, longest)
    """
    days = sorted({to_local_date(ts, tz) for ts in timestamps}, reverse=True)
    if not days:
        return StreakResult()

    reference = to_local_date(now, tz)
    running = 0
    current = 0
    longest = 0
    in_first_run = True

    for day in days:
        if (reference - day).days <= 1:
            running += 1
            if in_first_run:
                current = running
        else:
            longest = max(longest, running)
            running = 1
            in_first_run = False
        reference = day

    longest = max(longest, running)
    return StreakResult(current=current, longest=longest)
