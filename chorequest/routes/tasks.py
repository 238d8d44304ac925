"""Task API endpoints for ChoreQuest.

Covers the task lifecycle:
- Listing and viewing a household's tasks
- Creating, updating and deleting tasks
- Completing tasks (scored against the due date, points credited)
"""

import logging

from flask import Blueprint, jsonify, request

from chorequest.auth import auth_required
from chorequest.engine.records import CATEGORIES, TASK_STATUSES
from chorequest.routes.helpers import current_member, error_response, internal_error
from chorequest.schemas import (
    TASK_COMPLETE_SCHEMA,
    TASK_CREATE_SCHEMA,
    TASK_UPDATE_SCHEMA,
    parse_status_filter,
    validate_payload,
)
from chorequest.services.errors import ForbiddenError, ServiceError
from chorequest.services.household_service import HouseholdService
from chorequest.services.task_service import TaskService

tasks_bp = Blueprint('tasks', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)


@tasks_bp.route('/households/<int:household_id>/tasks', methods=['GET'])
@auth_required
def list_tasks(household_id: int):
    """List a household's tasks.

    Query parameters:
        - status: pending, in_progress or completed
        - category: daily, weekly, monthly or seasonal
        - assigned_to: user ID

    Tasks are ordered by due date (undated last), then priority, then newest.
    """
    try:
        current_member(household_id)
        tasks = TaskService.list_tasks(
            household_id,
            status=parse_status_filter(request.args.get('status'), TASK_STATUSES),
            category=parse_status_filter(request.args.get('category'), CATEGORIES),
            assigned_to=request.args.get('assigned_to', type=int)
        )
        return jsonify({
            'data': [t.to_dict() for t in tasks],
            'message': f'Found {len(tasks)} tasks'
        })
    except ServiceError as e:
        return error_response(e)


@tasks_bp.route('/households/<int:household_id>/tasks', methods=['POST'])
@auth_required
def create_task(household_id: int):
    """Create a task in a household."""
    try:
        current_member(household_id)
        data = validate_payload(request.get_json(silent=True), TASK_CREATE_SCHEMA)
        task = TaskService.create_task(household_id, data)
        return jsonify({
            'data': task.to_dict(),
            'message': 'Task created successfully'
        }), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('create task', e)


@tasks_bp.route('/tasks/<int:task_id>', methods=['GET'])
@auth_required
def get_task(task_id: int):
    """Get a task with its completion history."""
    try:
        task = TaskService.get_task(task_id)
        current_member(task.household_id)
        data = task.to_dict()
        data['completions'] = [c.to_dict() for c in task.completions]
        return jsonify({'data': data})
    except ServiceError as e:
        return error_response(e)


@tasks_bp.route('/tasks/<int:task_id>', methods=['PUT'])
@auth_required
def update_task(task_id: int):
    """Update a task's editable fields."""
    try:
        task = TaskService.get_task(task_id)
        current_member(task.household_id)
        data = validate_payload(request.get_json(silent=True), TASK_UPDATE_SCHEMA)
        task = TaskService.update_task(task_id, data)
        return jsonify({
            'data': task.to_dict(),
            'message': 'Task updated successfully'
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(f'update task {task_id}', e)


@tasks_bp.route('/tasks/<int:task_id>', methods=['DELETE'])
@auth_required
def delete_task(task_id: int):
    """Delete a task and its completion history."""
    try:
        task = TaskService.get_task(task_id)
        current_member(task.household_id)
        TaskService.delete_task(task_id)
        return jsonify({'message': 'Task deleted successfully'})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(f'delete task {task_id}', e)


@tasks_bp.route('/tasks/<int:task_id>/complete', methods=['POST'])
@auth_required
def complete_task(task_id: int):
    """Complete a task.

    Request body (optional):
        {
            "completed_by": int (admins may complete on behalf of a member;
                                 defaults to the current user)
        }

    Returns:
        JSON: {data: {task, completion}, message: str}
    """
    data = request.get_json(silent=True) or {}
    try:
        data = validate_payload(data, TASK_COMPLETE_SCHEMA)
        task = TaskService.get_task(task_id)
        user = current_member(task.household_id)

        completed_by = data.get('completed_by', user.id)
        if completed_by != user.id:
            membership = HouseholdService.require_member(task.household_id, user.id)
            if not membership.is_admin:
                raise ForbiddenError('Only household admins can complete tasks for other members')

        completion = TaskService.complete(task_id, completed_by)
        return jsonify({
            'data': {
                'task': completion.task.to_dict(),
                'completion': completion.to_dict()
            },
            'message': completion.bonus_message or 'Task completed successfully'
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(f'complete task {task_id}', e)
