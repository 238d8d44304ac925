"""
Level progression table and resolver.

LEVEL_TIERS is shared with every client that renders level progress; it is
served from GET /api/levels together with LEVEL_TABLE_VERSION rather than
being copied into the UI.
"""

from dataclasses import dataclass
from typing import Sequence

LEVEL_TABLE_VERSION = 1


@dataclass(frozen=True)
class LevelTier:
    level: int
    points_required: int


LEVEL_TIERS = (
    LevelTier(1, 0),
    LevelTier(2, 25),
    LevelTier(3, 75),
    LevelTier(4, 150),
    LevelTier(5, 300),
    LevelTier(6, 500),
    LevelTier(7, 1000),
    LevelTier(8, 2000),
    LevelTier(9, 3500),
    LevelTier(10, 5000),
)

DEFAULT_POINTS_TO_NEXT_LEVEL = 25


@dataclass(frozen=True)
class LevelProgress:
    level: int = 1
    level_points: int = 0
    points_to_next_level: int = DEFAULT_POINTS_TO_NEXT_LEVEL


def resolve_level(lifetime_points: int, tiers: Sequence[LevelTier] = LEVEL_TIERS) -> LevelProgress:
    """Map lifetime points to a level and the progress within it.

    Args:
        lifetime_points: Points ever credited (never reduced by redemptions)
        tiers: Level table ordered by ascending threshold

    Returns:
        LevelProgress for the highest tier whose threshold has been reached
    """
    if not tiers or lifetime_points <= 0:
        return LevelProgress()

    for index in range(len(tiers) - 1, -1, -1):
        tier = tiers[index]
        if tier.points_required <= lifetime_points:
            if index < len(tiers) - 1:
                to_next = tiers[index + 1].points_required - lifetime_points
            else:
                to_next = 0
            return LevelProgress(
                level=tier.level,
                level_points=lifetime_points - tier.points_required,
                points_to_next_level=to_next,
            )

    return LevelProgress()


def table_as_dicts(tiers: Sequence[LevelTier] = LEVEL_TIERS) -> list:
    """Serialize the level table for renderers."""
    return [{'level': t.level, 'points_required': t.points_required} for t in tiers]
