"""
Background job scheduler using APScheduler.

This module sets up and manages the background scheduler for ChoreQuest,
handling recurring task resets, the nightly points audit and the stats
sweep for active households.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import logging
import atexit

from chorequest.utils.recurrence import SEASON_START_MONTHS

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = BackgroundScheduler()


def init_scheduler(app):
    """
    Initialize and start the background scheduler.

    Args:
        app: Flask application instance
    """
    if not app.config.get('SCHEDULER_ENABLED', True):
        logger.info("Background scheduler disabled via configuration")
        return

    # Don't run scheduler in testing mode
    if app.config.get('TESTING', False):
        logger.info("Background scheduler disabled in testing mode")
        return

    # Import job functions
    from chorequest.jobs.task_reset import (
        reset_daily_tasks,
        reset_weekly_tasks,
        reset_monthly_tasks,
        reset_seasonal_tasks,
    )
    from chorequest.jobs.points_audit import audit_points_balances
    from chorequest.jobs.stats_sweep import recalculate_active_household_stats

    # Configure scheduler timezone
    timezone = app.config.get('SCHEDULER_TIMEZONE', 'UTC')

    # Create job wrappers that run within app context
    def with_app_context(func):
        """Wrap job function to run within Flask app context."""
        def wrapper():
            with app.app_context():
                func()
        wrapper.__name__ = func.__name__
        return wrapper

    # Schedule jobs

    # Daily reset at midnight
    scheduler.add_job(
        with_app_context(reset_daily_tasks),
        trigger=CronTrigger(hour=0, minute=0, timezone=timezone),
        id='reset_daily_tasks',
        name='Reset completed daily tasks',
        replace_existing=True
    )

    # Weekly reset Mondays at midnight
    scheduler.add_job(
        with_app_context(reset_weekly_tasks),
        trigger=CronTrigger(day_of_week='mon', hour=0, minute=0, timezone=timezone),
        id='reset_weekly_tasks',
        name='Reset completed weekly tasks',
        replace_existing=True
    )

    # Monthly reset on the 1st at midnight
    scheduler.add_job(
        with_app_context(reset_monthly_tasks),
        trigger=CronTrigger(day=1, hour=0, minute=0, timezone=timezone),
        id='reset_monthly_tasks',
        name='Reset completed monthly tasks',
        replace_existing=True
    )

    # Seasonal reset on the 1st of each quarter at midnight
    scheduler.add_job(
        with_app_context(reset_seasonal_tasks),
        trigger=CronTrigger(
            month=','.join(str(m) for m in SEASON_START_MONTHS),
            day=1, hour=0, minute=0, timezone=timezone
        ),
        id='reset_seasonal_tasks',
        name='Reset completed seasonal tasks',
        replace_existing=True
    )

    # Audit points balances nightly at 02:00
    scheduler.add_job(
        with_app_context(audit_points_balances),
        trigger=CronTrigger(hour=2, minute=0, timezone=timezone),
        id='audit_points_balances',
        name='Audit member points balances',
        replace_existing=True
    )

    # Recalculate active household stats nightly at 03:00
    scheduler.add_job(
        with_app_context(recalculate_active_household_stats),
        trigger=CronTrigger(hour=3, minute=0, timezone=timezone),
        id='recalculate_active_household_stats',
        name='Recalculate active household stats',
        replace_existing=True
    )

    # Start the scheduler
    scheduler.start()
    logger.info("Background scheduler started with %d jobs", len(scheduler.get_jobs()))

    # Register shutdown handler
    atexit.register(shutdown_scheduler)


def shutdown_scheduler():
    """Shutdown the background scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


def run_job_now(job_id: str):
    """
    Run a scheduled job immediately (useful for testing/admin).

    Args:
        job_id: ID of the job to run

    Returns:
        bool: True if job was found and triggered, False otherwise
    """
    job = scheduler.get_job(job_id)
    if job:
        job.func()
        return True
    return False


def get_job_status():
    """
    Get status of all scheduled jobs.

    Returns:
        list: List of job status dictionaries
    """
    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run': job.next_run_time.isoformat() if getattr(job, 'next_run_time', None) else None,
            'trigger': str(job.trigger)
        })
    return jobs
