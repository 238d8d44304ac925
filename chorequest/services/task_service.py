"""Task service.

This module contains the business logic for household tasks:
- Listing, creating, updating and deleting tasks
- Completing tasks (scoring the completion and crediting points)
- Resetting completed recurring tasks for their next period

Routes should delegate to this service and handle HTTP responses.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from flask import current_app

from chorequest.engine import score_completion
from chorequest.models import db, HouseholdMember, PointsHistory, Task, TaskCompletion
from chorequest.services.errors import BadRequestError, ConflictError, NotFoundError
from chorequest.services.household_service import HouseholdService
from chorequest.services.stats_service import StatsService
from chorequest.utils.recurrence import end_of_day_utc, next_due_date
from chorequest.utils.timezone import get_timezone, to_local_date, utc_now
from chorequest.utils.webhooks import TASK_COMPLETED, fire_webhook

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {'high': 0, 'medium': 1, 'low': 2}

EDITABLE_FIELDS = ('title', 'description', 'points', 'difficulty', 'category', 'priority',
                   'assigned_to', 'due_at')


def task_sort_key(task: Task):
    """Due date first (undated last), then priority high to low, then newest."""
    return (
        task.due_at is None,
        task.due_at or datetime.min,
        PRIORITY_ORDER.get(task.priority, len(PRIORITY_ORDER)),
        -(task.created_at.timestamp() if task.created_at else 0),
        -(task.id or 0),
    )


class TaskService:
    """Service for managing household tasks."""

    @staticmethod
    def get_task(task_id: int) -> Task:
        """Get a task by ID or raise NotFoundError."""
        task = db.session.get(Task, task_id)
        if not task:
            raise NotFoundError(f'Task {task_id} not found')
        return task

    @staticmethod
    def list_tasks(household_id: int, status: Optional[str] = None, category: Optional[str] = None,
                   assigned_to: Optional[int] = None) -> List[Task]:
        """List a household's tasks in display order."""
        HouseholdService.get_household(household_id)

        query = Task.query.filter_by(household_id=household_id)
        if status:
            query = query.filter(Task.status == status)
        if category:
            query = query.filter(Task.category == category)
        if assigned_to:
            query = query.filter(Task.assigned_to == assigned_to)

        return sorted(query.all(), key=task_sort_key)

    @staticmethod
    def _check_assignee(household_id: int, user_id: Optional[int]) -> None:
        if user_id is None:
            return
        if not HouseholdMember.query.filter_by(household_id=household_id, user_id=user_id).first():
            raise BadRequestError(f'User {user_id} is not a member of this household')

    @staticmethod
    def create_task(household_id: int, data: dict) -> Task:
        """
        Create a task in a household.

        Args:
            household_id: Household the task belongs to
            data: Validated payload (see TASK_CREATE_SCHEMA)

        Returns:
            The created Task

        Raises:
            NotFoundError: Household not found
            BadRequestError: Assignee is not a household member
        """
        HouseholdService.get_household(household_id)
        TaskService._check_assignee(household_id, data.get('assigned_to'))

        task = Task(
            household_id=household_id,
            title=data['title'],
            description=data.get('description'),
            points=data['points'],
            difficulty=data['difficulty'],
            category=data['category'],
            priority=data.get('priority', 'medium'),
            assigned_to=data.get('assigned_to'),
            due_at=data.get('due_at'),
            status='pending'
        )
        db.session.add(task)
        db.session.commit()

        logger.info(f"Task {task.id} '{task.title}' created in household {household_id}")

        if task.assigned_to is not None:
            StatsService.recalculate(task.assigned_to, household_id)

        return task

    @staticmethod
    def update_task(task_id: int, data: dict) -> Task:
        """Update editable fields of a task and recompute affected members."""
        task = TaskService.get_task(task_id)
        if 'assigned_to' in data:
            TaskService._check_assignee(task.household_id, data['assigned_to'])

        affected = {task.member_id}
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(task, field, data[field])
        db.session.commit()
        affected.add(task.member_id)

        StatsService.recalculate_members(task.household_id, affected)
        return task

    @staticmethod
    def delete_task(task_id: int) -> None:
        """
        Delete a task along with its completion history.

        Points credited by the task's completions are withdrawn, so every
        member who completed it is recomputed afterwards.
        """
        task = TaskService.get_task(task_id)
        household_id = task.household_id

        affected = {task.member_id}
        affected.update(c.user_id for c in task.completions)

        completion_ids = [c.id for c in task.completions]
        if completion_ids:
            PointsHistory.query.filter(
                PointsHistory.task_completion_id.in_(completion_ids)
            ).delete(synchronize_session=False)

        db.session.delete(task)
        db.session.commit()

        logger.info(f"Task {task_id} deleted from household {household_id} "
                    f"({len(completion_ids)} completions removed)")

        StatsService.recalculate_members(household_id, affected)

    @staticmethod
    def complete(task_id: int, user_id: int, now: Optional[datetime] = None) -> TaskCompletion:
        """
        Complete a task, scoring it against its due date.

        Args:
            task_id: Task being completed
            user_id: Member completing it
            now: Completion time (defaults to current UTC time)

        Returns:
            The stored TaskCompletion

        Raises:
            NotFoundError: Task or user not found
            ForbiddenError: User is not a household member
            ConflictError: Task is already completed
        """
        task = TaskService.get_task(task_id)
        user = HouseholdService.get_user(user_id)
        HouseholdService.require_member(task.household_id, user.id)

        if task.status == 'completed':
            raise ConflictError('Task already completed')

        completed_at = now or utc_now()
        tolerance = timedelta(seconds=current_app.config.get('ON_TIME_TOLERANCE_SECONDS', 0))
        result = score_completion(task.points, task.due_at, completed_at, tolerance)

        logger.info(f"Task {task.id} completed by user {user.id}: {result.final_points} points "
                    f"(base {result.base_points}) {result.message}".rstrip())

        task.status = 'completed'
        task.completed_at = completed_at
        task.completed_by = user.id
        task.final_points = result.final_points
        task.bonus_message = result.message or None

        completion = TaskCompletion(
            task_id=task.id,
            user_id=user.id,
            household_id=task.household_id,
            completed_at=completed_at,
            due_at=task.due_at,
            base_points=result.base_points,
            points_earned=result.final_points,
            bonus_points=result.bonus_points or None,
            penalty_points=result.penalty_points or None,
            bonus_message=result.message or None,
            is_early=result.is_early,
            is_late=result.is_late,
            magnitude_hours=result.magnitude_hours
        )
        db.session.add(completion)
        db.session.flush()

        db.session.add(PointsHistory(
            user_id=user.id,
            household_id=task.household_id,
            points_delta=result.final_points,
            reason=f'Completed task: {task.title}',
            task_completion_id=completion.id,
            created_by=user.id
        ))
        user.last_active_at = completed_at
        db.session.commit()

        affected = {user.id, task.assigned_to}
        StatsService.recalculate_members(task.household_id, affected)

        fire_webhook(TASK_COMPLETED, completion)
        return completion

    @staticmethod
    def reset_task(task: Task, now: Optional[datetime] = None) -> Task:
        """
        Reopen a completed recurring task for its next period.

        The completion's credited points and completer are kept so the
        member's lifetime points do not drop. Does not commit.
        """
        tz = get_timezone()
        today = to_local_date(now or utc_now(), tz)
        due_day = next_due_date(task.category, today)

        task.status = 'pending'
        task.completed_at = None
        task.bonus_message = None
        task.due_at = end_of_day_utc(due_day, tz)

        logger.debug(f"Task {task.id} reset, next due {due_day.isoformat()}")
        return task

