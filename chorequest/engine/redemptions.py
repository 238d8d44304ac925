"""Redemption reconciliation.

Approved redemptions are deductions against lifetime points. There is no
stored balance to keep in sync: the ledger folds approved records in on
every snapshot computation.
"""

from typing import Iterable

from chorequest.engine.errors import InsufficientPointsError, InvalidRedemptionError
from chorequest.engine.records import RedemptionRecord

DEFAULT_POINTS_PER_UNIT = 100
CONVERSION_TOLERANCE = 0.01


def points_redeemed(redemptions: Iterable[RedemptionRecord], member_id: int, household_id: int) -> int:
    """Sum of approved redemption points for one member in one household."""
    return sum(
        r.points_requested for r in redemptions
        if r.is_approved and r.member_id == member_id and r.household_id == household_id
    )


def points_pending(redemptions: Iterable[RedemptionRecord], member_id: int, household_id: int) -> int:
    """Points tied up in requests that are still awaiting a decision."""
    return sum(
        r.points_requested for r in redemptions
        if r.status == 'pending' and r.member_id == member_id and r.household_id == household_id
    )


def validate_redemption(points_requested: int, cash_amount: float, earned_points: int,
                        pending_points: int = 0,
                        points_per_unit: int = DEFAULT_POINTS_PER_UNIT) -> None:
    """
    Check a new redemption request before it is recorded as pending.

    Args:
        points_requested: Points the member wants to cash in
        cash_amount: Cash value claimed for those points
        earned_points: Member's currently usable points
        pending_points: Points already requested and not yet decided
        points_per_unit: Conversion rate (points per currency unit)

    Raises:
        InvalidRedemptionError: Non-positive amounts or wrong conversion rate
        InsufficientPointsError: Not enough usable points
    """
    if points_requested <= 0:
        raise InvalidRedemptionError("Points requested must be positive")
    if cash_amount <= 0:
        raise InvalidRedemptionError("Cash amount must be positive")

    expected_amount = points_requested / points_per_unit
    if abs(expected_amount - cash_amount) > CONVERSION_TOLERANCE:
        raise InvalidRedemptionError("Invalid conversion rate")

    available = max(0, earned_points - pending_points)
    if points_requested > available:
        raise InsufficientPointsError(points_requested, available)
