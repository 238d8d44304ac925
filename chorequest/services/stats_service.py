"""Stats service: the single path from stored history to a member's snapshot.

Every mutation that can change a member's points (completion, task deletion,
redemption approval) and every background job recomputes through
StatsService.recalculate, which loads the raw history, runs the points
engine and replaces the member's UserStats row as a whole.
"""

import logging
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy import desc, func

from chorequest.engine import compute_snapshot, StatsSnapshot
from chorequest.models import db, PointsHistory, RedemptionRequest, Task, TaskCompletion, UserStats
from chorequest.services.household_service import HouseholdService
from chorequest.utils.locks import stats_lock
from chorequest.utils.timezone import get_timezone, utc_now
from chorequest.utils.webhooks import LEVEL_UP, fire_webhook

logger = logging.getLogger(__name__)


class StatsService:
    """Service for computing and storing member stats snapshots."""

    @staticmethod
    def compute(user_id: int, household_id: int, now: Optional[datetime] = None) -> StatsSnapshot:
        """Run the points engine over a member's stored history without saving."""
        tasks = Task.query.filter_by(household_id=household_id).all()
        completions = TaskCompletion.query.filter_by(user_id=user_id, household_id=household_id).all()
        redemptions = RedemptionRequest.query.filter_by(
            user_id=user_id,
            household_id=household_id,
            status='approved'
        ).all()

        return compute_snapshot(
            user_id,
            household_id,
            [t.to_record() for t in tasks],
            [c.to_record() for c in completions],
            [r.to_record() for r in redemptions],
            now=now or utc_now(),
            tz=get_timezone(),
        )

    @staticmethod
    def recalculate(user_id: int, household_id: int, now: Optional[datetime] = None) -> UserStats:
        """
        Recompute a member's snapshot and replace their stored stats row.

        Reading the history and writing the row happen under the member's
        recompute lock and in one transaction.

        Args:
            user_id: Member to recompute
            household_id: Household to recompute in
            now: Reference time (defaults to current UTC time)

        Returns:
            The stored UserStats row

        Raises:
            NotFoundError: User or household not found
        """
        HouseholdService.get_household(household_id)
        HouseholdService.get_user(user_id)

        with stats_lock(user_id, household_id):
            snapshot = StatsService.compute(user_id, household_id, now)

            stats = UserStats.query.filter_by(user_id=user_id, household_id=household_id).first()
            previous_level = stats.level if stats else None
            if stats is None:
                stats = UserStats(user_id=user_id, household_id=household_id)
                db.session.add(stats)

            stats.replace_with(snapshot)
            db.session.commit()

        logger.debug(f"Recalculated stats for user {user_id} in household {household_id}: "
                     f"earned={snapshot.earned_points} level={snapshot.level}")

        if previous_level is not None and snapshot.level > previous_level:
            logger.info(f"User {user_id} reached level {snapshot.level} in household {household_id}")
            fire_webhook(LEVEL_UP, stats, previous_level=previous_level)

        return stats

    @staticmethod
    def get_or_compute(user_id: int, household_id: int) -> UserStats:
        """Stored stats for a member, computing them on first access."""
        stats = UserStats.query.filter_by(user_id=user_id, household_id=household_id).first()
        if stats is None:
            stats = StatsService.recalculate(user_id, household_id)
        return stats

    @staticmethod
    def recalculate_members(household_id: int, user_ids, now: Optional[datetime] = None) -> None:
        """Recompute those of the given users who are still household members."""
        members = set(HouseholdService.member_ids(household_id))
        for user_id in sorted(set(u for u in user_ids if u in members)):
            StatsService.recalculate(user_id, household_id, now)

    @staticmethod
    def household_stats(household_id: int) -> List[UserStats]:
        """Stats rows for every member, computing any that are missing."""
        stats = []
        for user_id in HouseholdService.member_ids(household_id):
            stats.append(StatsService.get_or_compute(user_id, household_id))
        return stats

    @staticmethod
    def leaderboard(household_id: int) -> List[UserStats]:
        """Members sorted by usable points, highest first."""
        return sorted(StatsService.household_stats(household_id),
                      key=lambda s: (-s.earned_points, s.user_id))

    @staticmethod
    def efficiency_leaderboard(household_id: int) -> List[UserStats]:
        """Members sorted by efficiency score, highest first."""
        return sorted(StatsService.household_stats(household_id),
                      key=lambda s: (-s.efficiency_score, s.user_id))

    @staticmethod
    def recent_activity(household_id: int, limit: Optional[int] = None) -> List[TaskCompletion]:
        """Latest completions in a household, newest first."""
        if limit is None:
            limit = current_app.config.get('RECENT_ACTIVITY_LIMIT', 20)
        return TaskCompletion.query.filter_by(household_id=household_id) \
            .order_by(desc(TaskCompletion.completed_at), desc(TaskCompletion.id)) \
            .limit(limit).all()

    @staticmethod
    def deductions(user_id: int, household_id: int) -> List[PointsHistory]:
        """Redemption deductions recorded for a member, newest first."""
        return PointsHistory.query.filter(
            PointsHistory.user_id == user_id,
            PointsHistory.household_id == household_id,
            PointsHistory.redemption_request_id.isnot(None)
        ).order_by(desc(PointsHistory.created_at), desc(PointsHistory.id)).all()

    @staticmethod
    def deduction_totals(household_id: int) -> List[dict]:
        """Redemption deductions per member of a household, largest first."""
        rows = db.session.query(
            PointsHistory.user_id,
            func.count(PointsHistory.id),
            func.sum(PointsHistory.points_delta)
        ).filter(
            PointsHistory.household_id == household_id,
            PointsHistory.redemption_request_id.isnot(None)
        ).group_by(PointsHistory.user_id).all()

        names = {m.user_id: m.user.name for m in HouseholdService.list_members(household_id)}
        totals = [{
            'user_id': user_id,
            'user_name': names.get(user_id),
            'deductions': count,
            'points_deducted': -int(total)
        } for user_id, count, total in rows]
        return sorted(totals, key=lambda t: (-t['points_deducted'], t['user_id']))
