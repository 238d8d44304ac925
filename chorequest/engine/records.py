"""
Plain records consumed and produced by the points engine.

The engine never sees ORM objects. Models convert themselves with
``to_record()`` so every computation works on immutable snapshots of the
raw history.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

DIFFICULTIES = ('easy', 'medium', 'hard')
CATEGORIES = ('daily', 'weekly', 'monthly', 'seasonal')
TASK_STATUSES = ('pending', 'in_progress', 'completed')
REDEMPTION_STATUSES = ('pending', 'approved', 'rejected')


@dataclass(frozen=True)
class TaskRecord:
    """A task as the engine sees it."""

    id: int
    household_id: int
    base_points: int
    difficulty: str = 'medium'
    category: str = 'daily'
    status: str = 'pending'
    assigned_to: Optional[int] = None
    completed_by: Optional[int] = None
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    final_points: Optional[int] = None

    @property
    def member_id(self) -> Optional[int]:
        """The member credited for this task: the completer, else the assignee."""
        if self.completed_by is not None:
            return self.completed_by
        return self.assigned_to

    @property
    def is_completed(self) -> bool:
        return self.status == 'completed'

    @property
    def is_credited(self) -> bool:
        """True if the task is completed now or kept points from a reset completion."""
        return self.is_completed or self.final_points is not None

    @property
    def credited_points(self) -> int:
        return self.final_points if self.final_points is not None else self.base_points


@dataclass(frozen=True)
class CompletionEvent:
    """Immutable record of one task completion.

    ``due_at`` is the due date in force when the task was completed; a later
    recurring reset moves the task's own due date. Events derived from a
    TaskRecord (no stored completion row) have ``id`` None.
    """

    member_id: int
    household_id: int
    task_id: int
    completed_at: Optional[datetime]
    points_earned: int
    base_points: int
    due_at: Optional[datetime] = None
    is_early: bool = False
    is_late: bool = False
    magnitude_hours: float = 0.0
    id: Optional[int] = None

    @property
    def is_timed(self) -> bool:
        return self.due_at is not None


@dataclass(frozen=True)
class RedemptionRecord:
    """A request to cash in points."""

    id: int
    member_id: int
    household_id: int
    points_requested: int
    cash_amount: float
    status: str = 'pending'
    requested_at: Optional[datetime] = None

    @property
    def is_approved(self) -> bool:
        return self.status == 'approved'


@dataclass(frozen=True)
class StatsSnapshot:
    """Complete stats for one member in one household."""

    household_id: int
    member_id: int
    total_tasks: int
    completed_tasks: int
    lifetime_points: int
    points_redeemed: int
    earned_points: int
    current_streak: int
    longest_streak: int
    level: int
    level_points: int
    points_to_next_level: int
    efficiency_score: float
    last_active_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return asdict(self)
