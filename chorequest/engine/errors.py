"""Exceptions raised by the points engine."""


class EngineError(Exception):
    """Base exception for points engine errors."""


class NotFoundError(EngineError):
    """Raised when a snapshot is requested without a member or household."""


class RedemptionError(EngineError):
    """Base exception for rejected redemption requests."""


class InvalidRedemptionError(RedemptionError):
    """Raised for malformed redemption amounts or conversion rates."""


class InsufficientPointsError(RedemptionError):
    """Raised when a redemption asks for more points than are available.

    Attributes:
        requested: Points asked for
        available: Points the member can still redeem
    """

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient points. You have {available} available points in this household."
        )
