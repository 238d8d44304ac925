"""
Background jobs for ChoreQuest.

This package contains scheduled jobs that run in the background:
- task_reset: Reopen completed recurring tasks for their next period
- stats_sweep: Recompute stats for households with recent activity
- points_audit: Check stored stats against history and heal drift
"""

from chorequest.jobs.task_reset import (
    reset_completed_tasks,
    reset_daily_tasks,
    reset_weekly_tasks,
    reset_monthly_tasks,
    reset_seasonal_tasks,
)
from chorequest.jobs.stats_sweep import recalculate_active_household_stats
from chorequest.jobs.points_audit import audit_points_balances

__all__ = [
    'reset_completed_tasks',
    'reset_daily_tasks',
    'reset_weekly_tasks',
    'reset_monthly_tasks',
    'reset_seasonal_tasks',
    'recalculate_active_household_stats',
    'audit_points_balances'
]
