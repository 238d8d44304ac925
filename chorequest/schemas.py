"""
JSON schemas and validation for ChoreQuest request payloads.

Each route validates its JSON body against one of these schemas before
handing it to a service.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import jsonschema

from chorequest.engine.records import CATEGORIES, DIFFICULTIES, REDEMPTION_STATUSES
from chorequest.services.errors import BadRequestError

PRIORITIES = ('low', 'medium', 'high')

_TIMESTAMP = {
    "type": ["string", "null"],
    "description": "ISO 8601 timestamp; naive values are UTC"
}

TASK_CREATE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "minLength": 1, "maxLength": 255},
        "description": {"type": ["string", "null"]},
        "points": {"type": "integer", "minimum": 1},
        "difficulty": {"type": "string", "enum": list(DIFFICULTIES)},
        "category": {"type": "string", "enum": list(CATEGORIES)},
        "priority": {"type": "string", "enum": list(PRIORITIES)},
        "assigned_to": {"type": ["integer", "null"]},
        "due_at": _TIMESTAMP
    },
    "required": ["title", "points", "difficulty", "category"],
    "additionalProperties": False
}

TASK_UPDATE_SCHEMA = {
    "type": "object",
    "properties": dict(TASK_CREATE_SCHEMA["properties"]),
    "minProperties": 1,
    "additionalProperties": False
}

TASK_COMPLETE_SCHEMA = {
    "type": "object",
    "properties": {
        "completed_by": {"type": "integer"}
    },
    "additionalProperties": False
}

REDEMPTION_CREATE_SCHEMA = {
    "type": "object",
    "properties": {
        "user_id": {"type": "integer"},
        "points_requested": {"type": "integer"},
        "cash_amount": {"type": "number"}
    },
    "required": ["points_requested", "cash_amount"],
    "additionalProperties": False
}

REDEMPTION_STATUS_SCHEMA = {
    "type": "object",
    "properties": {
        "status": {"type": "string", "enum": [s for s in REDEMPTION_STATUSES if s != 'pending']},
        "admin_notes": {"type": ["string", "null"]}
    },
    "required": ["status"],
    "additionalProperties": False
}

HOUSEHOLD_CREATE_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "maxLength": 255}
    },
    "required": ["name"],
    "additionalProperties": False
}

MEMBER_ADD_SCHEMA = {
    "type": "object",
    "properties": {
        "email": {"type": "string", "minLength": 3},
        "name": {"type": "string", "minLength": 1},
        "role": {"type": "string", "enum": ["admin", "member"]}
    },
    "required": ["email"],
    "additionalProperties": False
}

MEMBER_ROLE_SCHEMA = {
    "type": "object",
    "properties": {
        "role": {"type": "string", "enum": ["admin", "member"]}
    },
    "required": ["role"],
    "additionalProperties": False
}


def validate_payload(data: Any, schema: dict) -> dict:
    """
    Validate a request body against a schema.

    Args:
        data: Parsed JSON body (may be None)
        schema: JSON schema dict

    Returns:
        The validated payload

    Raises:
        BadRequestError: Body missing or invalid
    """
    if data is None:
        raise BadRequestError('Request body must be JSON')

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.exceptions.ValidationError as e:
        field = '.'.join(str(p) for p in e.absolute_path)
        message = f"Invalid field '{field}': {e.message}" if field else f"Invalid payload: {e.message}"
        raise BadRequestError(message)

    if 'due_at' in data:
        data = dict(data)
        data['due_at'] = parse_timestamp(data['due_at'])
    return data


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 string into a naive UTC datetime."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise BadRequestError(f"Invalid timestamp '{value}', expected ISO 8601")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_status_filter(value: Optional[str], allowed) -> Optional[str]:
    """Validate an optional ?status= query parameter."""
    if value is None or value == '':
        return None
    if value not in allowed:
        raise BadRequestError(f"Invalid status '{value}'. Must be one of: {', '.join(allowed)}")
    return value

