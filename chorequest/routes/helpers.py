"""Shared response helpers for API blueprints."""

import logging

from flask import jsonify

from chorequest.auth import get_current_user
from chorequest.models import db
from chorequest.services.errors import ServiceError
from chorequest.services.household_service import HouseholdService

logger = logging.getLogger(__name__)


def error_response(e: ServiceError):
    """JSON error body for a service exception."""
    body = {
        'error': e.error,
        'message': e.message
    }
    if e.details:
        body['details'] = e.details
    return jsonify(body), e.status_code


def internal_error(action: str, e: Exception):
    """Log an unexpected failure, roll back and return a 500 response."""
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    db.session.rollback()
    return jsonify({
        'error': 'Internal Server Error',
        'message': f'Failed to {action}',
        'details': str(e)
    }), 500


def current_member(household_id: int):
    """Current user, after checking they belong to the household."""
    user = get_current_user()
    HouseholdService.require_member(household_id, user.id)
    return user
