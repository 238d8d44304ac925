"""Tests for background jobs and the scheduler."""

from datetime import date, datetime, timedelta
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from chorequest.jobs.points_audit import audit_points_balances
from chorequest.jobs.stats_sweep import recalculate_active_household_stats
from chorequest.jobs.task_reset import reset_completed_tasks, reset_daily_tasks
from chorequest.models import UserStats
from chorequest.scheduler import get_job_status, init_scheduler, run_job_now
from chorequest.services.stats_service import StatsService
from chorequest.services.task_service import TaskService
from chorequest.utils.recurrence import end_of_day_utc, next_due_date
from chorequest.utils.timezone import utc_now


class TestRecurrence:
    """Tests for next due date calculation."""

    def test_daily(self):
        assert next_due_date('daily', date(2024, 2, 28)) == date(2024, 2, 29)

    def test_weekly(self):
        assert next_due_date('weekly', date(2024, 12, 30)) == date(2025, 1, 6)

    def test_monthly_clamps_to_month_end(self):
        assert next_due_date('monthly', date(2024, 1, 31)) == date(2024, 2, 29)

    def test_seasonal(self):
        assert next_due_date('seasonal', date(2024, 4, 1)) == date(2024, 7, 1)

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            next_due_date('yearly', date(2024, 1, 1))

    def test_end_of_day_in_local_timezone(self):
        end = end_of_day_utc(date(2024, 7, 1), ZoneInfo('America/New_York'))
        assert end == datetime(2024, 7, 2, 3, 59, 59, 999000)


class TestTaskReset:
    """Tests for recurring task resets."""

    def test_reset_reopens_completed_tasks(self, db_session, make_task, member_user, household):
        task = make_task(category='daily', points=10, due_at=utc_now() + timedelta(hours=5))
        TaskService.complete(task.id, member_user.id)
        lifetime_before = StatsService.recalculate(member_user.id, household.id).lifetime_points

        now = datetime(2024, 5, 20, 0, 0, 5)
        assert reset_completed_tasks('daily', now) == 1

        db_session.refresh(task)
        assert task.status == 'pending'
        assert task.completed_at is None
        assert task.due_at == datetime(2024, 5, 21, 23, 59, 59, 999000)
        assert task.final_points == 12
        assert task.completed_by == member_user.id

        stats = StatsService.recalculate(member_user.id, household.id)
        assert stats.lifetime_points == lifetime_before
        assert stats.completed_tasks == 0

    def test_reset_only_touches_its_category(self, db_session, make_task, member_user):
        daily = make_task(category='daily')
        weekly = make_task(category='weekly')
        TaskService.complete(daily.id, member_user.id)
        TaskService.complete(weekly.id, member_user.id)

        assert reset_daily_tasks() == 1

        db_session.refresh(weekly)
        assert weekly.status == 'completed'

    def test_recurring_task_accumulates_lifetime_points(self, db_session, make_task, member_user, household):
        task = make_task(category='weekly', points=10)
        TaskService.complete(task.id, member_user.id)
        reset_completed_tasks('weekly', datetime(2024, 5, 20))
        TaskService.complete(task.id, member_user.id)

        stats = StatsService.recalculate(member_user.id, household.id)
        assert stats.lifetime_points > 10
        assert len(task.completions) == 2

    def test_reset_refreshes_stored_stats(self, db_session, make_task, member_user, household):
        task = make_task(category='weekly', points=10, assigned_to=member_user.id)
        TaskService.complete(task.id, member_user.id, now=utc_now() - timedelta(days=3))
        stats = UserStats.query.filter_by(user_id=member_user.id, household_id=household.id).one()
        assert stats.completed_tasks == 1

        reset_completed_tasks('weekly')

        db_session.refresh(stats)
        fresh = StatsService.compute(member_user.id, household.id)
        assert stats.completed_tasks == 0
        assert stats.efficiency_score == fresh.efficiency_score
        assert audit_points_balances() == []

    def test_monthly_reset_due_date(self, db_session, make_task, member_user):
        task = make_task(category='monthly')
        TaskService.complete(task.id, member_user.id)

        reset_completed_tasks('monthly', datetime(2024, 1, 31, 0, 0))
        db_session.refresh(task)
        assert task.due_at == datetime(2024, 2, 29, 23, 59, 59, 999000)


class TestStatsSweep:
    """Tests for the active household stats sweep."""

    def test_sweep_recalculates_active_households(self, db_session, make_task, member_user, household):
        TaskService.complete(make_task().id, member_user.id)

        result = recalculate_active_household_stats()
        assert result == {'recalculated': 2, 'households': 1}
        assert UserStats.query.filter_by(household_id=household.id).count() == 2

    def test_sweep_ignores_inactive_households(self, db_session, make_task, member_user):
        TaskService.complete(make_task().id, member_user.id)

        result = recalculate_active_household_stats(now=utc_now() + timedelta(days=2))
        assert result == {'recalculated': 0, 'households': 0}

    def test_sweep_continues_after_member_failure(self, db_session, make_task, member_user, admin_user):
        TaskService.complete(make_task().id, member_user.id)
        original = StatsService.recalculate

        def flaky(user_id, household_id, now=None):
            if user_id == admin_user.id:
                raise RuntimeError('boom')
            return original(user_id, household_id, now)

        with patch.object(StatsService, 'recalculate', side_effect=flaky):
            result = recalculate_active_household_stats()

        assert result == {'recalculated': 1, 'households': 1}

    def test_sweep_refreshes_lapsed_streak(self, db_session, make_task, member_user, household):
        TaskService.complete(make_task().id, member_user.id)
        assert StatsService.get_or_compute(member_user.id, household.id).current_streak == 1

        recalculate_active_household_stats(now=utc_now() + timedelta(hours=1))
        stats = StatsService.recalculate(member_user.id, household.id, utc_now() + timedelta(days=3))
        assert stats.current_streak == 0
        assert stats.longest_streak == 1


class TestPointsAudit:
    """Tests for the nightly points audit."""

    def test_clean_audit(self, db_session, make_task, member_user):
        TaskService.complete(make_task().id, member_user.id)
        assert audit_points_balances() == []

    def test_audit_heals_stale_stats(self, db_session, make_task, member_user, household):
        TaskService.complete(make_task(points=10).id, member_user.id)
        stats = UserStats.query.filter_by(user_id=member_user.id, household_id=household.id).one()
        stats.earned_points = 500
        db_session.commit()

        discrepancies = audit_points_balances()
        assert len(discrepancies) == 1
        assert discrepancies[0]['stored_earned'] == 500
        assert discrepancies[0]['calculated_earned'] == 10

        db_session.refresh(stats)
        assert stats.earned_points == 10

    def test_audit_heals_drifted_counts(self, db_session, make_task, member_user, household):
        TaskService.complete(make_task(points=10).id, member_user.id)
        stats = UserStats.query.filter_by(user_id=member_user.id, household_id=household.id).one()
        stats.completed_tasks = 7
        stats.efficiency_score = 99.0
        db_session.commit()

        discrepancies = audit_points_balances()
        assert len(discrepancies) == 1
        assert discrepancies[0]['stale_fields'] == ['completed_tasks', 'efficiency_score']

        db_session.refresh(stats)
        assert stats.completed_tasks == 1
        assert stats.efficiency_score != 99.0

    def test_audit_creates_missing_rows(self, db_session, household):
        assert UserStats.query.count() == 0
        audit_points_balances()
        assert UserStats.query.count() == 2


class TestScheduler:
    """Tests for scheduler helpers."""

    def test_scheduler_not_started_in_testing(self, app):
        init_scheduler(app)
        assert get_job_status() == []
        assert run_job_now('reset_daily_tasks') is False

    def test_job_status_endpoint(self, client, household, admin_headers):
        response = client.get('/api/jobs', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['data'] == []

    def test_run_unknown_job(self, client, household, admin_headers):
        response = client.post('/api/jobs/nope/run', headers=admin_headers)
        assert response.status_code == 404

    def test_jobs_forbidden_for_plain_member(self, client, household, member_headers):
        response = client.get('/api/jobs', headers=member_headers)
        assert response.status_code == 403

    def test_run_job_forbidden_for_unknown_identity(self, client, db_session):
        with patch('chorequest.scheduler.run_job_now') as run_now:
            response = client.post('/api/jobs/reset_daily_tasks/run',
                                   headers={'X-Auth-User': 'stranger@nowhere.test'})

        assert response.status_code == 403
        assert response.get_json()['message'] == 'Household admin privileges required'
        run_now.assert_not_called()
