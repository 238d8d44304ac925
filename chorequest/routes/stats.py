"""Stats, leaderboard and activity API endpoints for ChoreQuest."""

import logging

from flask import Blueprint, jsonify

from chorequest.auth import auth_required
from chorequest.engine.levels import LEVEL_TABLE_VERSION, table_as_dicts
from chorequest.routes.helpers import current_member, error_response, internal_error
from chorequest.services.errors import ServiceError
from chorequest.services.household_service import HouseholdService
from chorequest.services.stats_service import StatsService

stats_bp = Blueprint('stats', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)


def _ranked(stats):
    data = []
    for rank, row in enumerate(stats, start=1):
        entry = row.to_dict()
        entry['rank'] = rank
        data.append(entry)
    return data


@stats_bp.route('/levels', methods=['GET'])
def list_levels():
    """The level table used for progression."""
    return jsonify({
        'data': {
            'version': LEVEL_TABLE_VERSION,
            'levels': table_as_dicts()
        }
    })


@stats_bp.route('/households/<int:household_id>/stats', methods=['GET'])
@auth_required
def household_leaderboard(household_id: int):
    """Members ranked by usable (earned) points."""
    try:
        current_member(household_id)
        return jsonify({'data': _ranked(StatsService.leaderboard(household_id))})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('load household stats', e)


@stats_bp.route('/households/<int:household_id>/stats/efficiency', methods=['GET'])
@auth_required
def efficiency_leaderboard(household_id: int):
    """Members ranked by efficiency score."""
    try:
        current_member(household_id)
        return jsonify({'data': _ranked(StatsService.efficiency_leaderboard(household_id))})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('load efficiency stats', e)


@stats_bp.route('/households/<int:household_id>/members/<int:user_id>/stats', methods=['GET'])
@auth_required
def member_stats(household_id: int, user_id: int):
    """Stored stats snapshot for one member."""
    try:
        current_member(household_id)
        HouseholdService.require_member(household_id, user_id)
        stats = StatsService.get_or_compute(user_id, household_id)
        return jsonify({'data': stats.to_dict()})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('load member stats', e)


@stats_bp.route('/households/<int:household_id>/members/<int:user_id>/stats/recalculate', methods=['POST'])
@auth_required
def recalculate_member_stats(household_id: int, user_id: int):
    """Recompute a member's snapshot from their full history."""
    try:
        current_member(household_id)
        HouseholdService.require_member(household_id, user_id)
        stats = StatsService.recalculate(user_id, household_id)
        return jsonify({
            'data': stats.to_dict(),
            'message': 'Stats recalculated successfully'
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('recalculate stats', e)


@stats_bp.route('/households/<int:household_id>/activity', methods=['GET'])
@auth_required
def recent_activity(household_id: int):
    """Latest completions in the household, newest first."""
    try:
        current_member(household_id)
        completions = StatsService.recent_activity(household_id)
        return jsonify({
            'data': [c.to_dict() for c in completions],
            'message': f'Found {len(completions)} completions'
        })
    except ServiceError as e:
        return error_response(e)


@stats_bp.route('/households/<int:household_id>/members/<int:user_id>/deductions', methods=['GET'])
@auth_required
def member_deductions(household_id: int, user_id: int):
    """Points deducted from a member by approved redemptions."""
    try:
        current_member(household_id)
        entries = StatsService.deductions(user_id, household_id)
        total = -sum(e.points_delta for e in entries)
        return jsonify({
            'data': [e.to_dict() for e in entries],
            'message': f'Found {len(entries)} deductions totalling {total} points'
        })
    except ServiceError as e:
        return error_response(e)


@stats_bp.route('/households/<int:household_id>/deductions', methods=['GET'])
@auth_required
def household_deductions(household_id: int):
    """Points deducted by approved redemptions, totalled per member."""
    try:
        current_member(household_id)
        totals = StatsService.deduction_totals(household_id)
        return jsonify({
            'data': totals,
            'message': f'Found deductions for {len(totals)} members'
        })
    except ServiceError as e:
        return error_response(e)
