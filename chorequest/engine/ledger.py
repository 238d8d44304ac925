"""
Ledger aggregation: one consistent stats snapshot per member and household.

compute_snapshot is the only place where lifetime points, redemptions,
streaks, level and efficiency are combined. Completion handlers, redemption
approval, the periodic sweep and the audit job all call it instead of
re-deriving any of these figures.
"""

from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Sequence

from chorequest.engine.efficiency import calculate_efficiency
from chorequest.engine.errors import NotFoundError
from chorequest.engine.levels import LEVEL_TIERS, LevelTier, resolve_level
from chorequest.engine.records import CompletionEvent, RedemptionRecord, StatsSnapshot, TaskRecord
from chorequest.engine.redemptions import points_redeemed
from chorequest.engine.streaks import calculate_streaks
from chorequest.utils.timezone import as_utc


def member_tasks(tasks: Iterable[TaskRecord], member_id: int, household_id: int) -> List[TaskRecord]:
    """Tasks in the household credited to (or assigned to) the member."""
    return [t for t in tasks if t.household_id == household_id and t.member_id == member_id]


def member_completions(completions: Iterable[CompletionEvent], member_id: int,
                       household_id: int) -> List[CompletionEvent]:
    return [c for c in completions if c.household_id == household_id and c.member_id == member_id]


def derive_completion(task: TaskRecord) -> CompletionEvent:
    """Rebuild the facts of a completion from a task that has no stored event."""
    completed_at = task.completed_at
    due_at = task.due_at if completed_at is not None else None
    is_early = is_late = False
    magnitude = 0.0
    if due_at is not None:
        hours_diff = (as_utc(due_at) - as_utc(completed_at)).total_seconds() / 3600
        is_early = hours_diff > 0
        is_late = hours_diff < 0
        magnitude = abs(hours_diff)
    return CompletionEvent(
        member_id=task.member_id,
        household_id=task.household_id,
        task_id=task.id,
        completed_at=completed_at,
        points_earned=task.credited_points,
        base_points=task.base_points,
        due_at=due_at,
        is_early=is_early,
        is_late=is_late,
        magnitude_hours=magnitude,
    )


def completion_facts(tasks: Sequence[TaskRecord], completions: Sequence[CompletionEvent]) -> List[CompletionEvent]:
    """Stored completion events plus derived facts for credited tasks without one.

    Both inputs must already be scoped to one member and household.
    """
    facts = list(completions)
    recorded_task_ids = {c.task_id for c in completions}
    for task in tasks:
        if task.is_credited and task.id not in recorded_task_ids:
            facts.append(derive_completion(task))
    return facts


def compute_snapshot(member_id: Optional[int], household_id: Optional[int],
                     tasks: Iterable[TaskRecord], completions: Iterable[CompletionEvent],
                     redemptions: Iterable[RedemptionRecord], *, now: datetime, tz: tzinfo,
                     tiers: Sequence[LevelTier] = LEVEL_TIERS) -> StatsSnapshot:
    """
    Compute the full stats snapshot for one member in one household.

    Pure and idempotent: inputs are only read, and identical inputs give an
    identical snapshot. Records belonging to other members or households are
    ignored, so callers may pass a whole household's history.

    Args:
        member_id: Member the snapshot is for
        household_id: Household the snapshot is for
        tasks: Task records (any scope)
        completions: Completion events (any scope)
        redemptions: Redemption records (any scope, any status)
        now: Reference time for streaks
        tz: Timezone defining calendar days for streaks
        tiers: Level table

    Returns:
        StatsSnapshot

    Raises:
        NotFoundError: member_id or household_id is missing
    """
    if member_id is None:
        raise NotFoundError("Member not found")
    if household_id is None:
        raise NotFoundError("Household not found")

    scoped_tasks = member_tasks(tasks, member_id, household_id)
    scoped_completions = member_completions(completions, member_id, household_id)
    completed_tasks = [t for t in scoped_tasks if t.is_completed]
    facts = completion_facts(scoped_tasks, scoped_completions)
    timestamps = [f.completed_at for f in facts if f.completed_at is not None]

    lifetime_points = sum(f.points_earned for f in facts)
    redeemed = points_redeemed(redemptions, member_id, household_id)
    earned_points = max(0, lifetime_points - redeemed)

    streaks = calculate_streaks(timestamps, now, tz)
    progress = resolve_level(lifetime_points, tiers)
    efficiency = calculate_efficiency(scoped_tasks, completed_tasks, facts, streaks.longest)

    last_active_at = max(timestamps, default=None)

    return StatsSnapshot(
        household_id=household_id,
        member_id=member_id,
        total_tasks=len(scoped_tasks),
        completed_tasks=len(completed_tasks),
        lifetime_points=lifetime_points,
        points_redeemed=redeemed,
        earned_points=earned_points,
        current_streak=streaks.current,
        longest_streak=streaks.longest,
        level=progress.level,
        level_points=progress.level_points,
        points_to_next_level=progress.points_to_next_level,
        efficiency_score=efficiency,
        last_active_at=last_active_at,
    )
