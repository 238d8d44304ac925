"""Tests for stats snapshot aggregation."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from chorequest.engine import (
    CompletionEvent,
    NotFoundError,
    RedemptionRecord,
    TaskRecord,
    compute_snapshot,
)

UTC = ZoneInfo('UTC')
NOW = datetime(2024, 6, 15, 18, 0, 0)
MEMBER = 7
HOUSEHOLD = 1


def completed_task(task_id, points, member=MEMBER, household=HOUSEHOLD, completed_at=NOW, **kwargs):
    return TaskRecord(
        id=task_id,
        household_id=household,
        base_points=points,
        status='completed',
        completed_by=member,
        assigned_to=member,
        completed_at=completed_at,
        final_points=kwargs.pop('final_points', points),
        **kwargs
    )


def event(task_id, earned, member=MEMBER, household=HOUSEHOLD, completed_at=NOW, base=None):
    return CompletionEvent(
        member_id=member,
        household_id=household,
        task_id=task_id,
        completed_at=completed_at,
        points_earned=earned,
        base_points=base if base is not None else earned,
    )


def redemption(points, status='approved', member=MEMBER, household=HOUSEHOLD, redemption_id=1):
    return RedemptionRecord(
        id=redemption_id,
        member_id=member,
        household_id=household,
        points_requested=points,
        cash_amount=points / 100,
        status=status,
    )


def snapshot(tasks=(), completions=(), redemptions=(), now=NOW):
    return compute_snapshot(MEMBER, HOUSEHOLD, list(tasks), list(completions), list(redemptions),
                            now=now, tz=UTC)


class TestComputeSnapshot:
    """Tests for compute_snapshot."""

    def test_empty_history(self):
        result = snapshot()
        assert result.total_tasks == 0
        assert result.lifetime_points == 0
        assert result.earned_points == 0
        assert result.efficiency_score == 0.0
        assert (result.level, result.level_points, result.points_to_next_level) == (1, 0, 25)
        assert result.last_active_at is None

    def test_redemptions_exceeding_lifetime_clamp_to_zero(self):
        tasks = [completed_task(1, 150)]
        result = snapshot(tasks, [event(1, 150)], [redemption(200)])
        assert result.lifetime_points == 150
        assert result.points_redeemed == 200
        assert result.earned_points == 0
        assert result.level == 4

    def test_only_approved_redemptions_are_deducted(self):
        tasks = [completed_task(1, 100)]
        redemptions = [
            redemption(30, 'approved', redemption_id=1),
            redemption(20, 'pending', redemption_id=2),
            redemption(10, 'rejected', redemption_id=3),
        ]
        result = snapshot(tasks, [event(1, 100)], redemptions)
        assert result.points_redeemed == 30
        assert result.earned_points == 70

    def test_level_uses_lifetime_not_earned_points(self):
        tasks = [completed_task(1, 80)]
        result = snapshot(tasks, [event(1, 80)], [redemption(80)])
        assert result.earned_points == 0
        assert result.level == 3

    def test_other_members_and_households_are_ignored(self):
        tasks = [
            completed_task(1, 10),
            completed_task(2, 50, member=8),
            completed_task(3, 70, household=2),
        ]
        completions = [event(1, 10), event(2, 50, member=8), event(3, 70, household=2)]
        redemptions = [redemption(40, member=8), redemption(5, household=2, redemption_id=2)]
        result = snapshot(tasks, completions, redemptions)
        assert result.total_tasks == 1
        assert result.lifetime_points == 10
        assert result.points_redeemed == 0

    def test_credited_task_without_event_still_counts(self):
        tasks = [completed_task(1, 12), completed_task(2, 8)]
        result = snapshot(tasks, [event(1, 12)])
        assert result.lifetime_points == 20
        assert result.completed_tasks == 2

    def test_pending_task_is_counted_but_not_credited(self):
        tasks = [completed_task(1, 10), TaskRecord(id=2, household_id=HOUSEHOLD, base_points=5, assigned_to=MEMBER)]
        result = snapshot(tasks, [event(1, 10)])
        assert result.total_tasks == 2
        assert result.completed_tasks == 1
        assert result.lifetime_points == 10

    def test_streaks_and_last_active(self):
        earlier = NOW - timedelta(days=1)
        tasks = [completed_task(1, 5), completed_task(2, 5, completed_at=earlier)]
        completions = [event(1, 5), event(2, 5, completed_at=earlier)]
        result = snapshot(tasks, completions)
        assert (result.current_streak, result.longest_streak) == (2, 2)
        assert result.last_active_at == NOW

    def test_missing_member_raises(self):
        with pytest.raises(NotFoundError):
            compute_snapshot(None, HOUSEHOLD, [], [], [], now=NOW, tz=UTC)

    def test_missing_household_raises(self):
        with pytest.raises(NotFoundError):
            compute_snapshot(MEMBER, None, [], [], [], now=NOW, tz=UTC)


class TestLedgerProperties:
    """Idempotence, reconciliation and monotonicity of snapshots."""

    def history(self):
        tasks = [completed_task(i, 10 + i, completed_at=NOW - timedelta(days=i)) for i in range(1, 6)]
        completions = [event(t.id, t.final_points, completed_at=t.completed_at) for t in tasks]
        return tasks, completions

    def test_idempotent(self):
        tasks, completions = self.history()
        redemptions = [redemption(20)]
        first = snapshot(tasks, completions, redemptions)
        second = snapshot(tasks, completions, redemptions)
        assert first == second

    def test_inputs_are_not_mutated(self):
        tasks, completions = self.history()
        tasks_before, completions_before = list(tasks), list(completions)
        snapshot(tasks, completions)
        assert tasks == tasks_before
        assert completions == completions_before

    def test_reconciliation(self):
        tasks, completions = self.history()
        redemptions = [redemption(15, redemption_id=1), redemption(10, redemption_id=2)]
        result = snapshot(tasks, completions, redemptions)
        assert result.earned_points == max(0, result.lifetime_points - result.points_redeemed)
        assert result.points_redeemed == 25

    def test_lifetime_points_monotonic_under_new_completions(self):
        tasks, completions = self.history()
        before = snapshot(tasks, completions)

        new_task = completed_task(9, 3)
        after = snapshot(tasks + [new_task], completions + [event(9, 3)])
        assert after.lifetime_points >= before.lifetime_points

    def test_lifetime_points_monotonic_under_redemptions(self):
        tasks, completions = self.history()
        before = snapshot(tasks, completions)
        after = snapshot(tasks, completions, [redemption(30)])
        assert after.lifetime_points == before.lifetime_points
        assert after.earned_points < before.earned_points

    def test_recurring_reset_keeps_lifetime_points(self):
        """A reset task keeps its credit, and each completion is its own event."""
        first_done = NOW - timedelta(days=1)
        reset = TaskRecord(id=1, household_id=HOUSEHOLD, base_points=10, status='pending',
                           completed_by=MEMBER, assigned_to=MEMBER, final_points=12)
        before = snapshot([reset], [event(1, 12, completed_at=first_done, base=10)])
        assert before.lifetime_points == 12

        again = completed_task(1, 10, final_points=9)
        after = snapshot([again], [event(1, 12, completed_at=first_done, base=10), event(1, 9, base=10)])
        assert after.lifetime_points == 21

    def test_efficiency_within_bounds(self):
        tasks, completions = self.history()
        result = snapshot(tasks, completions)
        assert 0.0 <= result.efficiency_score <= 100.0
        assert 1 <= result.level <= 10
