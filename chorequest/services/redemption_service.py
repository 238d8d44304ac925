"""Redemption workflow service.

Members request to cash in points; household admins approve or reject.
Approval records a deduction in the points history and recomputes the
member's stats, which is where the redeemed points leave earned_points.
"""

import logging
from typing import List, Optional

from flask import current_app
from sqlalchemy import desc

from chorequest.engine import (
    InsufficientPointsError,
    RedemptionError,
    points_pending,
    validate_redemption,
)
from chorequest.models import db, PointsHistory, RedemptionRequest
from chorequest.services.errors import BadRequestError, NotFoundError
from chorequest.services.household_service import HouseholdService
from chorequest.services.stats_service import StatsService
from chorequest.utils.locks import stats_lock
from chorequest.utils.timezone import utc_now
from chorequest.utils.webhooks import REDEMPTION_REQUESTED, fire_webhook, redemption_event

logger = logging.getLogger(__name__)


class RedemptionService:
    """Service for redemption requests."""

    @staticmethod
    def get_request(request_id: int) -> RedemptionRequest:
        """Get a redemption request by ID or raise NotFoundError."""
        redemption = db.session.get(RedemptionRequest, request_id)
        if not redemption:
            raise NotFoundError(f'Redemption request {request_id} not found')
        return redemption

    @staticmethod
    def create(user_id: int, household_id: int, points_requested: int,
               cash_amount: float) -> RedemptionRequest:
        """
        Record a pending redemption request after validating it.

        The member's fresh snapshot and their other pending requests bound
        how many points can be requested.

        Raises:
            NotFoundError: User or household not found
            ForbiddenError: User is not a household member
            BadRequestError: Invalid amounts or insufficient points
        """
        HouseholdService.require_member(household_id, user_id)

        stats = StatsService.recalculate(user_id, household_id)

        with stats_lock(user_id, household_id):
            pending = RedemptionRequest.query.filter_by(
                user_id=user_id,
                household_id=household_id,
                status='pending'
            ).all()
            pending_points = points_pending([r.to_record() for r in pending], user_id, household_id)

            try:
                validate_redemption(
                    points_requested,
                    cash_amount,
                    stats.earned_points,
                    pending_points=pending_points,
                    points_per_unit=current_app.config.get('POINTS_PER_CASH_UNIT', 100)
                )
            except InsufficientPointsError as e:
                raise BadRequestError(str(e), details={
                    'requested': e.requested,
                    'available': e.available
                })
            except RedemptionError as e:
                raise BadRequestError(str(e))

            redemption = RedemptionRequest(
                user_id=user_id,
                household_id=household_id,
                points_requested=points_requested,
                cash_amount=cash_amount,
                status='pending',
                requested_at=utc_now()
            )
            db.session.add(redemption)
            db.session.commit()

        logger.info(f"User {user_id} requested redemption of {points_requested} points "
                    f"({cash_amount:.2f}) in household {household_id}")

        fire_webhook(REDEMPTION_REQUESTED, redemption)
        return redemption

    @staticmethod
    def list_for_member(user_id: int, household_id: int) -> List[RedemptionRequest]:
        return RedemptionRequest.query.filter_by(user_id=user_id, household_id=household_id) \
            .order_by(desc(RedemptionRequest.requested_at), desc(RedemptionRequest.id)).all()

    @staticmethod
    def list_for_household(household_id: int, status: Optional[str] = None) -> List[RedemptionRequest]:
        """All requests in a household, newest first."""
        query = RedemptionRequest.query.filter_by(household_id=household_id)
        if status:
            query = query.filter(RedemptionRequest.status == status)
        return query.order_by(desc(RedemptionRequest.requested_at), desc(RedemptionRequest.id)).all()

    @staticmethod
    def update_status(request_id: int, status: str, admin_id: int,
                      admin_notes: Optional[str] = None) -> RedemptionRequest:
        """
        Approve or reject a pending redemption request.

        Args:
            request_id: Request to decide
            status: 'approved' or 'rejected'
            admin_id: Household admin making the decision
            admin_notes: Optional note for the member

        Returns:
            The updated RedemptionRequest

        Raises:
            NotFoundError: Request not found
            ForbiddenError: Caller is not a household admin
            BadRequestError: Request was already processed
        """
        redemption = RedemptionService.get_request(request_id)
        HouseholdService.require_admin(redemption.household_id, admin_id)

        if redemption.status != 'pending':
            raise BadRequestError(f'Redemption request already {redemption.status}')

        redemption.status = status
        redemption.processed_at = utc_now()
        redemption.processed_by = admin_id
        redemption.admin_notes = admin_notes

        if status == 'approved':
            db.session.add(PointsHistory(
                user_id=redemption.user_id,
                household_id=redemption.household_id,
                points_delta=-redemption.points_requested,
                reason=f'Redemption request approved: {redemption.cash_amount:.2f}',
                redemption_request_id=redemption.id,
                created_by=admin_id
            ))
        db.session.commit()

        logger.info(f"Redemption request {redemption.id} {status} by user {admin_id}")

        if status == 'approved':
            StatsService.recalculate(redemption.user_id, redemption.household_id)

        fire_webhook(redemption_event(status), redemption)
        return redemption
