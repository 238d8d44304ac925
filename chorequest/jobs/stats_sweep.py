"""
Active household stats sweep job.
"""

from datetime import datetime, timedelta
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def recalculate_active_household_stats(now: Optional[datetime] = None) -> dict:
    """
    Recompute stats for every member of households with recent completions.

    Runs nightly at 03:00 so streaks that lapsed overnight are reflected in
    stored snapshots. A failure for one member is logged and the sweep
    continues with the next.

    Args:
        now: Reference time (defaults to current UTC time)

    Returns:
        dict with 'recalculated' member count and 'households' count
    """
    logger.info("Starting active household stats sweep")

    # Import inside function to avoid circular imports and to get app context
    from flask import current_app
    from chorequest.models import db, HouseholdMember, TaskCompletion
    from chorequest.services.stats_service import StatsService
    from chorequest.utils.timezone import utc_now

    now = now or utc_now()
    window = timedelta(hours=current_app.config.get('ACTIVITY_WINDOW_HOURS', 24))

    rows = db.session.query(TaskCompletion.household_id).filter(
        TaskCompletion.completed_at >= now - window
    ).distinct().all()
    household_ids = sorted(row[0] for row in rows)

    recalculated = 0
    for household_id in household_ids:
        members = HouseholdMember.query.filter_by(household_id=household_id).all()
        for member in members:
            try:
                StatsService.recalculate(member.user_id, household_id, now)
                recalculated += 1
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error recalculating stats for user {member.user_id} "
                             f"in household {household_id}: {e}", exc_info=True)

    logger.info(f"Recalculated stats for {recalculated} users in {len(household_ids)} households")
    return {'recalculated': recalculated, 'households': len(household_ids)}
