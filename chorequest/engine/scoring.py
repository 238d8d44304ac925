"""Time-adjusted scoring of a single task completion.

Early completions earn a 20% bonus, completions right at the due time earn
15%, and late completions lose 0.5% per hour late (capped at 30%). A
completed task always credits at least one point.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from chorequest.utils.math_utils import round_half_up
from chorequest.utils.timezone import as_utc

EARLY_BONUS_RATE = 0.20
ON_TIME_BONUS_RATE = 0.15
LATE_PENALTY_RATE_PER_HOUR = 0.005
MAX_LATE_PENALTY_RATE = 0.30
MIN_COMPLETION_POINTS = 1


@dataclass(frozen=True)
class ScoreResult:
    base_points: int
    final_points: int
    message: str = ''
    is_early: bool = False
    is_late: bool = False
    magnitude_hours: float = 0.0

    @property
    def bonus_points(self) -> int:
        return max(0, self.final_points - self.base_points)

    @property
    def penalty_points(self) -> int:
        return max(0, self.base_points - self.final_points)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def describe_offset(hours: float) -> str:
    """Human-readable size of an early/late offset, e.g. '2 days 3 hours'."""
    days = int(hours // 24)
    remaining_hours = int(hours % 24)
    parts = []
    if days > 0:
        parts.append(_plural(days, 'day'))
    if remaining_hours > 0:
        parts.append(_plural(remaining_hours, 'hour'))
    if not parts:
        return 'less than an hour'
    return ' '.join(parts)


def score_completion(base_points: int, due_at: Optional[datetime], completed_at: datetime,
                     on_time_tolerance: timedelta = timedelta(0)) -> ScoreResult:
    """
    Compute the points credited for completing a task.

    Args:
        base_points: The task's base point value
        due_at: When the task was due (None for undated tasks)
        completed_at: When the task was completed ("now" for the caller)
        on_time_tolerance: Offsets within this window count as on time

    Returns:
        ScoreResult with final points, adjustment message and early/late facts
    """
    if due_at is None:
        return ScoreResult(base_points=base_points, final_points=base_points)

    hours_diff = (as_utc(due_at) - as_utc(completed_at)).total_seconds() / 3600
    tolerance_hours = on_time_tolerance.total_seconds() / 3600

    if abs(hours_diff) <= tolerance_hours:
        bonus = round_half_up(base_points * ON_TIME_BONUS_RATE)
        return ScoreResult(
            base_points=base_points,
            final_points=base_points + bonus,
            message=f"+{bonus} on-time bonus",
        )

    if hours_diff > 0:
        bonus = round_half_up(base_points * EARLY_BONUS_RATE)
        return ScoreResult(
            base_points=base_points,
            final_points=base_points + bonus,
            message=f"+{bonus} early bonus ({describe_offset(hours_diff)} early)",
            is_early=True,
            magnitude_hours=hours_diff,
        )

    hours_late = abs(hours_diff)
    penalty_rate = min(hours_late * LATE_PENALTY_RATE_PER_HOUR, MAX_LATE_PENALTY_RATE)
    penalty = round_half_up(base_points * penalty_rate)
    return ScoreResult(
        base_points=base_points,
        final_points=max(MIN_COMPLETION_POINTS, base_points - penalty),
        message=f"-{penalty} late penalty ({describe_offset(hours_late)} late)",
        is_late=True,
        magnitude_hours=hours_late,
    )
