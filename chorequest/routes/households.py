"""Household API endpoints for ChoreQuest."""

import logging

from flask import Blueprint, jsonify, request

from chorequest.auth import auth_required, get_current_user
from chorequest.models import Household, HouseholdMember
from chorequest.routes.helpers import current_member, error_response, internal_error
from chorequest.schemas import (
    HOUSEHOLD_CREATE_SCHEMA,
    MEMBER_ADD_SCHEMA,
    MEMBER_ROLE_SCHEMA,
    validate_payload,
)
from chorequest.services.errors import ServiceError
from chorequest.services.household_service import HouseholdService

households_bp = Blueprint('households', __name__, url_prefix='/api/households')
logger = logging.getLogger(__name__)


@households_bp.route('', methods=['GET'])
@auth_required
def list_households():
    """List the households the current user belongs to."""
    user = get_current_user()
    households = Household.query.join(HouseholdMember) \
        .filter(HouseholdMember.user_id == user.id) \
        .order_by(Household.id).all()

    return jsonify({
        'data': [h.to_dict() for h in households],
        'message': f'Found {len(households)} households'
    })


@households_bp.route('', methods=['POST'])
@auth_required
def create_household():
    """Create a household with the current user as admin.

    Request body:
        {"name": str}
    """
    user = get_current_user()
    try:
        data = validate_payload(request.get_json(silent=True), HOUSEHOLD_CREATE_SCHEMA)
        household = HouseholdService.create_household(data['name'], user.id)
        return jsonify({
            'data': household.to_dict(),
            'message': 'Household created successfully'
        }), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('create household', e)


@households_bp.route('/<int:household_id>', methods=['GET'])
@auth_required
def get_household(household_id: int):
    """Get a household with its members."""
    try:
        current_member(household_id)
        household = HouseholdService.get_household(household_id)
        data = household.to_dict()
        data['members'] = [m.to_dict() for m in HouseholdService.list_members(household_id)]
        return jsonify({'data': data})
    except ServiceError as e:
        return error_response(e)


@households_bp.route('/<int:household_id>/members', methods=['GET'])
@auth_required
def list_members(household_id: int):
    """List the members of a household."""
    try:
        current_member(household_id)
        members = HouseholdService.list_members(household_id)
        return jsonify({
            'data': [m.to_dict() for m in members],
            'message': f'Found {len(members)} members'
        })
    except ServiceError as e:
        return error_response(e)


@households_bp.route('/<int:household_id>/members', methods=['POST'])
@auth_required
def add_member(household_id: int):
    """Add a member by email (household admins only).

    Request body:
        {"email": str, "name": str (optional), "role": "admin"|"member" (optional)}
    """
    user = get_current_user()
    try:
        data = validate_payload(request.get_json(silent=True), MEMBER_ADD_SCHEMA)
        membership = HouseholdService.add_member(
            household_id,
            data['email'].strip().lower(),
            added_by=user.id,
            name=data.get('name'),
            role=data.get('role', 'member')
        )
        return jsonify({
            'data': membership.to_dict(),
            'message': 'Member added successfully'
        }), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('add member', e)


@households_bp.route('/<int:household_id>', methods=['PUT'])
@auth_required
def update_household(household_id: int):
    """Rename a household (household admins only).

    Request body:
        {"name": str}
    """
    user = get_current_user()
    try:
        data = validate_payload(request.get_json(silent=True), HOUSEHOLD_CREATE_SCHEMA)
        household = HouseholdService.update_household(household_id, data['name'], user.id)
        return jsonify({
            'data': household.to_dict(),
            'message': 'Household updated successfully'
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(f'update household {household_id}', e)


@households_bp.route('/<int:household_id>', methods=['DELETE'])
@auth_required
def delete_household(household_id: int):
    """Delete a household with all of its tasks, redemptions and stats."""
    user = get_current_user()
    try:
        HouseholdService.delete_household(household_id, user.id)
        return jsonify({'message': 'Household deleted successfully'})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(f'delete household {household_id}', e)


@households_bp.route('/<int:household_id>/members/<int:user_id>', methods=['DELETE'])
@auth_required
def remove_member(household_id: int, user_id: int):
    """Remove a member; admins can remove anyone, members only themselves."""
    user = get_current_user()
    try:
        HouseholdService.remove_member(household_id, user_id, removed_by=user.id)
        return jsonify({'message': 'Member removed successfully'})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('remove member', e)


@households_bp.route('/<int:household_id>/members/<int:user_id>/role', methods=['PUT'])
@auth_required
def update_member_role(household_id: int, user_id: int):
    """Change a member's role (household admins only).

    Request body:
        {"role": "admin"|"member"}
    """
    user = get_current_user()
    try:
        data = validate_payload(request.get_json(silent=True), MEMBER_ROLE_SCHEMA)
        membership = HouseholdService.update_member_role(household_id, user_id, data['role'], updated_by=user.id)
        return jsonify({
            'data': membership.to_dict(),
            'message': 'Member role updated successfully'
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('update member role', e)
