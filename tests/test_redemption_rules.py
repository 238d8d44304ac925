"""Tests for redemption validation and reconciliation."""

import pytest

from chorequest.engine import (
    InsufficientPointsError,
    InvalidRedemptionError,
    RedemptionRecord,
    points_pending,
    points_redeemed,
    validate_redemption,
)


def record(points, status, member=1, household=1, record_id=1):
    return RedemptionRecord(id=record_id, member_id=member, household_id=household,
                            points_requested=points, cash_amount=points / 100, status=status)


class TestValidateRedemption:
    """Tests for validate_redemption."""

    def test_valid_request(self):
        validate_redemption(500, 5.0, earned_points=600)

    def test_conversion_within_tolerance(self):
        validate_redemption(333, 3.33, earned_points=400)

    def test_wrong_conversion_rate(self):
        with pytest.raises(InvalidRedemptionError, match='Invalid conversion rate'):
            validate_redemption(500, 10.0, earned_points=600)

    def test_non_positive_points(self):
        with pytest.raises(InvalidRedemptionError, match='Points requested must be positive'):
            validate_redemption(0, 0.0, earned_points=600)

    def test_non_positive_cash(self):
        with pytest.raises(InvalidRedemptionError, match='Cash amount must be positive'):
            validate_redemption(100, -1.0, earned_points=600)

    def test_insufficient_points(self):
        with pytest.raises(InsufficientPointsError) as exc_info:
            validate_redemption(700, 7.0, earned_points=600)
        assert exc_info.value.available == 600
        assert str(exc_info.value) == 'Insufficient points. You have 600 available points in this household.'

    def test_pending_requests_reduce_availability(self):
        with pytest.raises(InsufficientPointsError) as exc_info:
            validate_redemption(300, 3.0, earned_points=600, pending_points=400)
        assert exc_info.value.available == 200

    def test_custom_conversion_rate(self):
        validate_redemption(50, 1.0, earned_points=100, points_per_unit=50)


class TestReconciliation:
    """Tests for redeemed and pending totals."""

    def test_points_redeemed_counts_approved_only(self):
        records = [record(100, 'approved'), record(50, 'pending', record_id=2), record(25, 'rejected', record_id=3)]
        assert points_redeemed(records, 1, 1) == 100

    def test_points_redeemed_is_scoped(self):
        records = [record(100, 'approved'), record(40, 'approved', member=2, record_id=2),
                   record(60, 'approved', household=2, record_id=3)]
        assert points_redeemed(records, 1, 1) == 100

    def test_points_pending(self):
        records = [record(100, 'approved'), record(50, 'pending', record_id=2), record(30, 'pending', record_id=3)]
        assert points_pending(records, 1, 1) == 80
