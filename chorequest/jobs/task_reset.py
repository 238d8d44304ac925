"""
Recurring task reset jobs.
"""

from collections import defaultdict
from datetime import datetime
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def reset_completed_tasks(category: str, now: Optional[datetime] = None) -> int:
    """
    Reopen every completed task of a category.

    Each task goes back to 'pending' with a new due date at the end of the
    next period's day (local time). Credited points and the completer are
    kept, so nobody's lifetime points change. Every member attached to a reset
    task is recomputed once the reset is committed.

    Args:
        category: 'daily', 'weekly', 'monthly' or 'seasonal'
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of tasks reset
    """
    logger.info(f"Starting {category} task reset")

    # Import inside function to avoid circular imports and to get app context
    from chorequest.models import db, Task
    from chorequest.services.stats_service import StatsService
    from chorequest.services.task_service import TaskService

    try:
        tasks = Task.query.filter_by(category=category, status='completed').all()

        # Reopened tasks drop out of completed counts and efficiency
        affected = defaultdict(set)
        for task in tasks:
            affected[task.household_id].update((task.completed_by, task.assigned_to))
            TaskService.reset_task(task, now)

        db.session.commit()
        logger.info(f"Reset {len(tasks)} {category} tasks")

        for household_id in sorted(affected):
            StatsService.recalculate_members(household_id, affected[household_id])

        return len(tasks)

    except Exception as e:
        db.session.rollback()
        logger.error(f"Error resetting {category} tasks: {e}")
        raise


def reset_daily_tasks():
    """Runs every day at 00:00."""
    return reset_completed_tasks('daily')


def reset_weekly_tasks():
    """Runs every Monday at 00:00."""
    return reset_completed_tasks('weekly')


def reset_monthly_tasks():
    """Runs on the first of every month at 00:00."""
    return reset_completed_tasks('monthly')


def reset_seasonal_tasks():
    """Runs on the first of January, April, July and October at 00:00."""
    return reset_completed_tasks('seasonal')
