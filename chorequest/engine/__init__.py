"""
Points & progression engine.

Pure computations over task, completion and redemption records. Nothing in
this package touches the database, the clock or Flask; "now" and the
timezone are always passed in.
"""

from chorequest.engine.efficiency import calculate_efficiency
from chorequest.engine.errors import (
    EngineError,
    InsufficientPointsError,
    InvalidRedemptionError,
    NotFoundError,
    RedemptionError,
)
from chorequest.engine.ledger import compute_snapshot
from chorequest.engine.levels import LEVEL_TABLE_VERSION, LEVEL_TIERS, LevelTier, resolve_level
from chorequest.engine.records import CompletionEvent, RedemptionRecord, StatsSnapshot, TaskRecord
from chorequest.engine.redemptions import points_pending, points_redeemed, validate_redemption
from chorequest.engine.scoring import ScoreResult, score_completion
from chorequest.engine.streaks import StreakResult, calculate_streaks

__all__ = [
    'calculate_efficiency',
    'calculate_streaks',
    'compute_snapshot',
    'points_pending',
    'points_redeemed',
    'resolve_level',
    'score_completion',
    'validate_redemption',
    'CompletionEvent',
    'EngineError',
    'InsufficientPointsError',
    'InvalidRedemptionError',
    'LevelTier',
    'LEVEL_TABLE_VERSION',
    'LEVEL_TIERS',
    'NotFoundError',
    'RedemptionError',
    'RedemptionRecord',
    'ScoreResult',
    'StatsSnapshot',
    'StreakResult',
    'TaskRecord',
]
