"""
Efficiency score: a 0-100 composite of five weighted sub-metrics.

    completion rate     30  completed / total tasks
    timeliness          25  average early/late offset, scaled from [-1, 1]
    difficulty balance  20  weighted hard/medium/easy mix of completed tasks
    streak consistency  15  longest streak relative to completed tasks
    points efficiency   10  credited points relative to potential base points

All sub-metrics cover the member's full history. Any sub-metric whose
denominator is zero contributes 0.
"""

from dataclasses import dataclass
from typing import Sequence

from chorequest.engine.records import CompletionEvent, TaskRecord
from chorequest.utils.math_utils import round_half_up, safe_ratio
from chorequest.utils.timezone import as_utc

COMPLETION_WEIGHT = 30
TIMELINESS_WEIGHT = 25
DIFFICULTY_WEIGHT = 20
STREAK_WEIGHT = 15
POINTS_WEIGHT = 10

DIFFICULTY_FACTORS = {'hard': 1.5, 'medium': 1.0, 'easy': 0.5}
MAX_DIFFICULTY_FACTOR = 1.5
TIMELINESS_HORIZON_DAYS = 7

MAX_SCORE = 100.0


@dataclass(frozen=True)
class EfficiencyBreakdown:
    completion: float = 0.0
    timeliness: float = 0.0
    difficulty: float = 0.0
    streak: float = 0.0
    points: float = 0.0

    @property
    def total(self) -> float:
        raw = self.completion + self.timeliness + self.difficulty + self.streak + self.points
        return round_half_up(min(MAX_SCORE, max(0.0, raw)), 2)


def timeliness_score(completions: Sequence[CompletionEvent]) -> float:
    """Average early/late offset in [-1, 1]; a week early is +1, a week late -1."""
    timed = [c for c in completions if c.is_timed]
    if not timed:
        return 0.0

    total = 0.0
    for completion in timed:
        days_diff = (as_utc(completion.due_at) - as_utc(completion.completed_at)).total_seconds() / 86400
        if days_diff > 0:
            total += min(1.0, days_diff / TIMELINESS_HORIZON_DAYS)
        elif days_diff < 0:
            total += max(-1.0, days_diff / TIMELINESS_HORIZON_DAYS)
    return total / len(timed)


def difficulty_balance(completed_tasks: Sequence[TaskRecord]) -> float:
    """Weighted difficulty mix in [0.5, 1.5], or 0 with nothing completed."""
    weighted = sum(DIFFICULTY_FACTORS.get(t.difficulty, 1.0) for t in completed_tasks)
    return safe_ratio(weighted, len(completed_tasks))


def potential_points(tasks: Sequence[TaskRecord], completions: Sequence[CompletionEvent]) -> int:
    """Base points of every completion plus those of tasks never completed."""
    completed_task_ids = {c.task_id for c in completions}
    outstanding = sum(t.base_points for t in tasks
                      if t.id not in completed_task_ids and not t.is_credited)
    return outstanding + sum(c.base_points for c in completions)


def efficiency_breakdown(tasks: Sequence[TaskRecord], completed_tasks: Sequence[TaskRecord],
                         completions: Sequence[CompletionEvent], longest_streak: int) -> EfficiencyBreakdown:
    """Weighted contributions of each sub-metric."""
    if not tasks:
        return EfficiencyBreakdown()

    completed_count = len(completed_tasks)
    timed = any(c.is_timed for c in completions)
    credited = sum(c.points_earned for c in completions)

    return EfficiencyBreakdown(
        completion=safe_ratio(completed_count, len(tasks)) * COMPLETION_WEIGHT,
        timeliness=(timeliness_score(completions) + 1) * (TIMELINESS_WEIGHT / 2) if timed else 0.0,
        difficulty=difficulty_balance(completed_tasks) / MAX_DIFFICULTY_FACTOR * DIFFICULTY_WEIGHT,
        streak=min(1.0, safe_ratio(longest_streak, completed_count)) * STREAK_WEIGHT,
        points=min(1.0, safe_ratio(credited, potential_points(tasks, completions))) * POINTS_WEIGHT,
    )


def calculate_efficiency(tasks: Sequence[TaskRecord], completed_tasks: Sequence[TaskRecord],
                         completions: Sequence[CompletionEvent], longest_streak: int) -> float:
    """
    Efficiency score for one member, rounded to 2 decimal places.

    Args:
        tasks: All of the member's tasks in the household
        completed_tasks: The subset currently completed
        completions: Completion facts (events, or derived from task records)
        longest_streak: Longest consecutive-day streak

    Returns:
        Score in [0, 100]; 0 when the member has no tasks
    """
    return efficiency_breakdown(tasks, completed_tasks, completions, longest_streak).total
