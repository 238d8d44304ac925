"""Tests for outbound event webhooks."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from chorequest.utils.webhooks import (
    LEVEL_UP,
    TASK_COMPLETED,
    build_payload,
    fire_webhook,
    redemption_event,
)

WEBHOOK_URL = 'http://hooks.example.com/chorequest'


@pytest.fixture
def webhook_app(app):
    app.config['WEBHOOK_URL'] = WEBHOOK_URL
    return app


@pytest.fixture
def mock_post():
    with patch('chorequest.utils.webhooks.requests.post') as post:
        post.return_value = MagicMock(status_code=200)
        yield post


def fired_events(mock_post):
    return [c.kwargs['json']['event'] for c in mock_post.call_args_list]


class TestBuildPayload:
    """Tests for payload construction."""

    def test_payload_from_dict(self, app):
        payload = build_payload(LEVEL_UP, {'user_id': 3, 'household_id': 7}, previous_level=1)
        assert payload['event'] == 'level_up'
        assert payload['household_id'] == 7
        assert payload['occurred_at'].endswith('Z')
        assert payload['data'] == {'user_id': 3, 'household_id': 7, 'previous_level': 1}

    def test_payload_from_model(self, db_session, sample_task):
        payload = build_payload(TASK_COMPLETED, sample_task)
        assert payload['data']['title'] == 'Wash dishes'
        assert payload['household_id'] == sample_task.household_id

    def test_unknown_event_rejected(self, app):
        with pytest.raises(ValueError):
            build_payload('task_deleted', {})

    def test_redemption_decision_events(self):
        assert redemption_event('approved') == 'redemption_approved'
        assert redemption_event('rejected') == 'redemption_rejected'


class TestFireWebhook:
    """Tests for webhook delivery."""

    def test_no_url_configured(self, db_session, mock_post):
        assert fire_webhook(TASK_COMPLETED, {}) is False
        mock_post.assert_not_called()

    def test_successful_delivery(self, webhook_app, db_session, mock_post):
        assert fire_webhook(TASK_COMPLETED, {'id': 1, 'household_id': 2}) is True
        mock_post.assert_called_once()
        assert mock_post.call_args.args[0] == WEBHOOK_URL
        assert mock_post.call_args.kwargs['timeout'] == 5
        assert mock_post.call_args.kwargs['headers'] == {'X-ChoreQuest-Event': 'task_completed'}

    def test_timeout_is_logged_not_raised(self, webhook_app, db_session, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()
        assert fire_webhook(TASK_COMPLETED, {'id': 1}) is False

    def test_http_error_is_logged_not_raised(self, webhook_app, db_session, mock_post):
        mock_post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError('500')
        assert fire_webhook(TASK_COMPLETED, {'id': 1}) is False


class TestWorkflowEvents:
    """Tests for events fired by the task and redemption workflows."""

    def test_completion_fires_task_completed(self, webhook_app, client, member_headers, sample_task, mock_post):
        client.post(f'/api/tasks/{sample_task.id}/complete', headers=member_headers)

        assert 'task_completed' in fired_events(mock_post)
        payload = next(c.kwargs['json'] for c in mock_post.call_args_list
                       if c.kwargs['json']['event'] == 'task_completed')
        assert payload['data']['points_earned'] == 12
        assert payload['data']['task_title'] == 'Wash dishes'

    def test_level_up_fires_when_threshold_crossed(self, webhook_app, client, household, member_headers,
                                                   make_task, member_user, mock_post):
        client.get(f'/api/households/{household.id}/members/{member_user.id}/stats',
                   headers=member_headers)
        task = make_task(points=30)
        client.post(f'/api/tasks/{task.id}/complete', headers=member_headers)

        assert 'level_up' in fired_events(mock_post)
        payload = next(c.kwargs['json'] for c in mock_post.call_args_list
                       if c.kwargs['json']['event'] == 'level_up')
        assert payload['data']['level'] == 2
        assert payload['data']['previous_level'] == 1

    def test_redemption_events(self, webhook_app, client, household, member_headers, admin_headers,
                               make_task, mock_post):
        task = make_task(points=200)
        client.post(f'/api/tasks/{task.id}/complete', headers=member_headers)

        response = client.post(f'/api/households/{household.id}/redemptions', json={
            'points_requested': 100, 'cash_amount': 1.0
        }, headers=member_headers)
        request_id = response.get_json()['data']['id']
        client.put(f'/api/redemptions/{request_id}/status', json={'status': 'approved'}, headers=admin_headers)

        events = fired_events(mock_post)
        assert 'redemption_requested' in events
        assert 'redemption_approved' in events
