"""Routes package for ChoreQuest API endpoints."""

# Import blueprints
from .households import households_bp
from .tasks import tasks_bp
from .stats import stats_bp
from .redemptions import redemptions_bp

# Export all blueprints
__all__ = ['households_bp', 'tasks_bp', 'stats_bp', 'redemptions_bp']
