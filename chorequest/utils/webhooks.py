"""
Outbound event webhooks.

When WEBHOOK_URL is set, household events are POSTed there as JSON:

    {"event": "task_completed", "household_id": 1,
     "occurred_at": "2024-05-20T10:00:00Z", "data": {...}}

Delivery is best effort. Failures are logged and never interrupt the
request or job that raised the event.
"""

import logging
from typing import Any

import requests
from flask import current_app

from chorequest.utils.timezone import utc_now

logger = logging.getLogger(__name__)

TASK_COMPLETED = 'task_completed'
LEVEL_UP = 'level_up'
REDEMPTION_REQUESTED = 'redemption_requested'
REDEMPTION_APPROVED = 'redemption_approved'
REDEMPTION_REJECTED = 'redemption_rejected'

EVENTS = frozenset({
    TASK_COMPLETED,
    LEVEL_UP,
    REDEMPTION_REQUESTED,
    REDEMPTION_APPROVED,
    REDEMPTION_REJECTED,
})

EVENT_HEADER = 'X-ChoreQuest-Event'

_DECISION_EVENTS = {
    'approved': REDEMPTION_APPROVED,
    'rejected': REDEMPTION_REJECTED,
}


def redemption_event(status: str) -> str:
    """Event raised when a redemption request is approved or rejected."""
    return _DECISION_EVENTS[status]


def build_payload(event: str, record: Any, **extra) -> dict:
    """
    Build the JSON body for a household event.

    Args:
        event: One of EVENTS
        record: TaskCompletion, UserStats or RedemptionRequest (anything with
            to_dict()), or a plain dict
        **extra: Event-specific fields merged into the data, e.g. previous_level

    Returns:
        Webhook payload dict

    Raises:
        ValueError: Unknown event name
    """
    if event not in EVENTS:
        raise ValueError(f'Unknown webhook event: {event}')

    data = record.to_dict() if hasattr(record, 'to_dict') else dict(record)
    data.update(extra)

    return {
        'event': event,
        'household_id': data.get('household_id'),
        'occurred_at': utc_now().isoformat() + 'Z',
        'data': data
    }


def fire_webhook(event: str, record: Any, **extra) -> bool:
    """
    POST a household event to WEBHOOK_URL.

    Returns:
        True if the endpoint accepted the event, False if no URL is
        configured or delivery failed
    """
    url = current_app.config.get('WEBHOOK_URL')
    if not url:
        return False

    payload = build_payload(event, record, **extra)

    try:
        response = requests.post(
            url,
            json=payload,
            headers={EVENT_HEADER: event},
            timeout=current_app.config.get('WEBHOOK_TIMEOUT_SECONDS', 5)
        )
        response.raise_for_status()
    except requests.exceptions.Timeout:
        logger.error(f"Webhook {event} for household {payload['household_id']} timed out")
        return False
    except requests.exceptions.RequestException as e:
        logger.error(f"Webhook {event} for household {payload['household_id']} failed: {e}")
        return False

    logger.info(f"Webhook {event} delivered (status {response.status_code})")
    return True
