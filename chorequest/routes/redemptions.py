"""Redemption API endpoints for ChoreQuest.

Members request to cash in points; household admins approve or reject.
"""

import logging

from flask import Blueprint, jsonify, request

from chorequest.auth import auth_required, get_current_user
from chorequest.engine.records import REDEMPTION_STATUSES
from chorequest.routes.helpers import current_member, error_response, internal_error
from chorequest.schemas import (
    REDEMPTION_CREATE_SCHEMA,
    REDEMPTION_STATUS_SCHEMA,
    parse_status_filter,
    validate_payload,
)
from chorequest.services.errors import ForbiddenError, ServiceError
from chorequest.services.household_service import HouseholdService
from chorequest.services.redemption_service import RedemptionService

redemptions_bp = Blueprint('redemptions', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)


@redemptions_bp.route('/households/<int:household_id>/redemptions', methods=['GET'])
@auth_required
def list_household_redemptions(household_id: int):
    """List a household's redemption requests, newest first.

    Query parameters:
        - status: pending, approved or rejected
    """
    try:
        current_member(household_id)
        requests = RedemptionService.list_for_household(
            household_id,
            status=parse_status_filter(request.args.get('status'), REDEMPTION_STATUSES)
        )
        return jsonify({
            'data': [r.to_dict() for r in requests],
            'message': f'Found {len(requests)} redemption requests'
        })
    except ServiceError as e:
        return error_response(e)


@redemptions_bp.route('/households/<int:household_id>/members/<int:user_id>/redemptions', methods=['GET'])
@auth_required
def list_member_redemptions(household_id: int, user_id: int):
    """List one member's redemption requests, newest first."""
    try:
        current_member(household_id)
        requests = RedemptionService.list_for_member(user_id, household_id)
        return jsonify({
            'data': [r.to_dict() for r in requests],
            'message': f'Found {len(requests)} redemption requests'
        })
    except ServiceError as e:
        return error_response(e)


@redemptions_bp.route('/households/<int:household_id>/redemptions', methods=['POST'])
@auth_required
def create_redemption(household_id: int):
    """Request to cash in points.

    Request body:
        {
            "points_requested": int,
            "cash_amount": float (points_requested / 100),
            "user_id": int (optional, admins only; defaults to current user)
        }
    """
    try:
        user = current_member(household_id)
        data = validate_payload(request.get_json(silent=True), REDEMPTION_CREATE_SCHEMA)

        user_id = data.get('user_id', user.id)
        if user_id != user.id:
            membership = HouseholdService.require_member(household_id, user.id)
            if not membership.is_admin:
                raise ForbiddenError('Only household admins can request redemptions for other members')

        redemption = RedemptionService.create(
            user_id,
            household_id,
            data['points_requested'],
            data['cash_amount']
        )
        return jsonify({
            'data': redemption.to_dict(),
            'message': 'Redemption request submitted'
        }), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('create redemption request', e)


@redemptions_bp.route('/redemptions/<int:request_id>/status', methods=['PUT'])
@auth_required
def update_redemption_status(request_id: int):
    """Approve or reject a pending request (household admins only).

    Request body:
        {"status": "approved"|"rejected", "admin_notes": str (optional)}
    """
    user = get_current_user()
    try:
        data = validate_payload(request.get_json(silent=True), REDEMPTION_STATUS_SCHEMA)
        redemption = RedemptionService.update_status(
            request_id,
            data['status'],
            admin_id=user.id,
            admin_notes=data.get('admin_notes')
        )
        return jsonify({
            'data': redemption.to_dict(),
            'message': f'Redemption request {redemption.status}'
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(f'update redemption request {request_id}', e)
