"""
Points balance audit job.
"""

import logging

logger = logging.getLogger(__name__)


def audit_points_balances() -> list:
    """
    Audit every stored stats row against the member's history.

    Runs nightly at 02:00. For each member of each household the snapshot is
    recomputed and compared field by field with the stored UserStats row,
    and its balance with the PointsHistory sum (credits minus redemption
    deductions). Discrepancies are logged and the stored row is replaced with
    the fresh snapshot.

    Returns:
        List of discrepancy dicts
    """
    logger.info("Starting points balance audit")

    # Import inside function to avoid circular imports and to get app context
    from chorequest.models import HouseholdMember, PointsHistory, UserStats
    from chorequest.services.stats_service import StatsService

    try:
        memberships = HouseholdMember.query.order_by(HouseholdMember.household_id,
                                                     HouseholdMember.user_id).all()
        discrepancies = []

        for member in memberships:
            stored = UserStats.query.filter_by(user_id=member.user_id,
                                               household_id=member.household_id).first()
            snapshot = StatsService.compute(member.user_id, member.household_id)
            history_total = PointsHistory.balance(member.user_id, member.household_id)
            expected_total = snapshot.lifetime_points - snapshot.points_redeemed

            stale_fields = []
            if stored is not None:
                stale_fields = [f for f in UserStats.SNAPSHOT_FIELDS
                                if getattr(stored, f) != getattr(snapshot, f)]
            stale = bool(stale_fields)
            if stale or history_total != expected_total:
                discrepancies.append({
                    'user_id': member.user_id,
                    'household_id': member.household_id,
                    'stale_fields': stale_fields,
                    'stored_earned': stored.earned_points if stored else None,
                    'calculated_earned': snapshot.earned_points,
                    'history_total': history_total,
                    'expected_total': expected_total
                })

            if stored is None or stale:
                StatsService.recalculate(member.user_id, member.household_id)

        if discrepancies:
            logger.error(f"Points discrepancies found: {discrepancies}")
        else:
            logger.info(f"Points audit complete: all {len(memberships)} member balances verified")

        return discrepancies

    except Exception as e:
        logger.error(f"Error in points balance audit: {e}")
        raise
