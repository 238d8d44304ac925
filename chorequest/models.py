"""
SQLAlchemy models for ChoreQuest.

This module defines the database models for the household task tracker.
Uses Flask-SQLAlchemy for ORM integration with Flask. Models that feed the
points engine expose ``to_record()`` returning the engine's plain records.
"""

from typing import Optional

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from chorequest.engine.records import CompletionEvent, RedemptionRecord, StatsSnapshot, TaskRecord
from chorequest.utils.timezone import utc_now

db = SQLAlchemy()


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


class User(db.Model):
    """A person who can belong to one or more households."""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    avatar_url = db.Column(db.String(512))
    last_active_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    memberships = relationship('HouseholdMember', back_populates='user', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<User {self.name}>'

    def to_dict(self) -> dict:
        """Serialize User to dictionary for JSON/webhook responses."""
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'avatar_url': self.avatar_url,
            'last_active_at': _iso(self.last_active_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class Household(db.Model):
    """A group of members sharing tasks (a family)."""

    __tablename__ = 'households'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    creator = relationship('User', foreign_keys=[created_by])
    members = relationship('HouseholdMember', back_populates='household', cascade='all, delete-orphan')
    tasks = relationship('Task', back_populates='household', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Household {self.name}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }

    def get_membership(self, user_id: int) -> Optional['HouseholdMember']:
        """Membership row for a user, or None if they are not a member."""
        return HouseholdMember.query.filter_by(household_id=self.id, user_id=user_id).first()


class HouseholdMember(db.Model):
    """Membership of a user in a household."""

    __tablename__ = 'household_members'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    role = db.Column(db.String(20), default='member', nullable=False)
    joined_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    # Relationships
    household = relationship('Household', back_populates='members')
    user = relationship('User', back_populates='memberships')

    # Constraints
    __table_args__ = (
        UniqueConstraint('household_id', 'user_id', name='unique_household_user'),
        CheckConstraint("role IN ('admin', 'member')", name='check_member_role'),
        Index('idx_household_members_user', 'user_id'),
    )

    def __repr__(self):
        return f'<HouseholdMember household_id={self.household_id} user_id={self.user_id} ({self.role})>'

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def to_dict(self) -> dict:
        return {
            'household_id': self.household_id,
            'user_id': self.user_id,
            'name': self.user.name if self.user else None,
            'role': self.role,
            'joined_at': _iso(self.joined_at)
        }


class Task(db.Model):
    """A household task (chore) that earns points when completed."""

    __tablename__ = 'tasks'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    points = db.Column(db.Integer, nullable=False)
    difficulty = db.Column(db.String(20), default='medium', nullable=False)
    category = db.Column(db.String(20), default='daily', nullable=False)
    priority = db.Column(db.String(20), default='medium', nullable=False)
    assigned_to = db.Column(db.Integer, db.ForeignKey('users.id'))
    status = db.Column(db.String(20), default='pending', nullable=False)
    due_at = db.Column(db.DateTime)

    # Completion state; final_points survives a recurring reset
    completed_at = db.Column(db.DateTime)
    completed_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    final_points = db.Column(db.Integer)
    bonus_message = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    household = relationship('Household', back_populates='tasks')
    assignee = relationship('User', foreign_keys=[assigned_to])
    completer = relationship('User', foreign_keys=[completed_by])
    completions = relationship('TaskCompletion', back_populates='task', cascade='all, delete-orphan')

    # Constraints
    __table_args__ = (
        CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name='check_task_difficulty'),
        CheckConstraint("category IN ('daily', 'weekly', 'monthly', 'seasonal')", name='check_task_category'),
        CheckConstraint("priority IN ('low', 'medium', 'high')", name='check_task_priority'),
        CheckConstraint("status IN ('pending', 'in_progress', 'completed')", name='check_task_status'),
        CheckConstraint("points > 0", name='check_task_points_positive'),
        Index('idx_tasks_household_status', 'household_id', 'status'),
        Index('idx_tasks_household_category', 'household_id', 'category'),
        Index('idx_tasks_assigned_to', 'assigned_to'),
        Index('idx_tasks_due_at', 'due_at'),
    )

    def __repr__(self):
        return f'<Task {self.title} ({self.status})>'

    def to_dict(self) -> dict:
        """Serialize Task to dictionary for JSON/webhook responses."""
        return {
            'id': self.id,
            'household_id': self.household_id,
            'title': self.title,
            'description': self.description,
            'points': self.points,
            'difficulty': self.difficulty,
            'category': self.category,
            'priority': self.priority,
            'assigned_to': self.assigned_to,
            'assigned_to_name': self.assignee.name if self.assignee else None,
            'status': self.status,
            'due_at': _iso(self.due_at),
            'completed_at': _iso(self.completed_at),
            'completed_by': self.completed_by,
            'completed_by_name': self.completer.name if self.completer else None,
            'final_points': self.final_points,
            'bonus_message': self.bonus_message,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }

    def to_record(self) -> TaskRecord:
        return TaskRecord(
            id=self.id,
            household_id=self.household_id,
            base_points=self.points,
            difficulty=self.difficulty,
            category=self.category,
            status=self.status,
            assigned_to=self.assigned_to,
            completed_by=self.completed_by,
            due_at=self.due_at,
            completed_at=self.completed_at,
            final_points=self.final_points,
        )

    @property
    def member_id(self) -> Optional[int]:
        """Member credited for the task: completer if any, else assignee."""
        return self.completed_by if self.completed_by is not None else self.assigned_to


class TaskCompletion(db.Model):
    """Immutable record of one completion of a task."""

    __tablename__ = 'task_completions'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    task_id = db.Column(db.Integer, db.ForeignKey('tasks.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=False)
    due_at = db.Column(db.DateTime)
    base_points = db.Column(db.Integer, nullable=False)
    points_earned = db.Column(db.Integer, nullable=False)
    bonus_points = db.Column(db.Integer)
    penalty_points = db.Column(db.Integer)
    bonus_message = db.Column(db.Text)
    is_early = db.Column(db.Boolean, default=False, nullable=False)
    is_late = db.Column(db.Boolean, default=False, nullable=False)
    magnitude_hours = db.Column(db.Float, default=0.0, nullable=False)

    # Relationships
    task = relationship('Task', back_populates='completions')
    user = relationship('User', foreign_keys=[user_id])

    # Indexes
    __table_args__ = (
        Index('idx_task_completions_user_household', 'user_id', 'household_id'),
        Index('idx_task_completions_household', 'household_id'),
        Index('idx_task_completions_completed_at', 'completed_at'),
    )

    def __repr__(self):
        return f'<TaskCompletion task_id={self.task_id} user_id={self.user_id} points={self.points_earned}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'task_id': self.task_id,
            'task_title': self.task.title if self.task else None,
            'user_id': self.user_id,
            'user_name': self.user.name if self.user else None,
            'household_id': self.household_id,
            'completed_at': _iso(self.completed_at),
            'due_at': _iso(self.due_at),
            'base_points': self.base_points,
            'points_earned': self.points_earned,
            'bonus_points': self.bonus_points,
            'penalty_points': self.penalty_points,
            'bonus_message': self.bonus_message,
            'is_early': self.is_early,
            'is_late': self.is_late,
            'magnitude_hours': self.magnitude_hours
        }

    def to_record(self) -> CompletionEvent:
        return CompletionEvent(
            id=self.id,
            member_id=self.user_id,
            household_id=self.household_id,
            task_id=self.task_id,
            completed_at=self.completed_at,
            points_earned=self.points_earned,
            base_points=self.base_points,
            due_at=self.due_at,
            is_early=self.is_early,
            is_late=self.is_late,
            magnitude_hours=self.magnitude_hours,
        )


class RedemptionRequest(db.Model):
    """Request by a member to cash in points."""

    __tablename__ = 'redemption_requests'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    points_requested = db.Column(db.Integer, nullable=False)
    cash_amount = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)
    requested_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    processed_at = db.Column(db.DateTime)
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    admin_notes = db.Column(db.Text)

    # Relationships
    user = relationship('User', foreign_keys=[user_id])
    processor = relationship('User', foreign_keys=[processed_by])

    # Constraints
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='check_redemption_status'),
        CheckConstraint("points_requested > 0", name='check_redemption_points_positive'),
        Index('idx_redemptions_household', 'household_id'),
        Index('idx_redemptions_user_household', 'user_id', 'household_id'),
    )

    def __repr__(self):
        return f'<RedemptionRequest user_id={self.user_id} points={self.points_requested} ({self.status})>'

    def to_dict(self) -> dict:
        """Serialize RedemptionRequest to dictionary for JSON/webhook responses."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_name': self.user.name if self.user else None,
            'household_id': self.household_id,
            'points_requested': self.points_requested,
            'cash_amount': self.cash_amount,
            'status': self.status,
            'requested_at': _iso(self.requested_at),
            'processed_at': _iso(self.processed_at),
            'processed_by': self.processed_by,
            'processed_by_name': self.processor.name if self.processor else None,
            'admin_notes': self.admin_notes
        }

    def to_record(self) -> RedemptionRecord:
        return RedemptionRecord(
            id=self.id,
            member_id=self.user_id,
            household_id=self.household_id,
            points_requested=self.points_requested,
            cash_amount=self.cash_amount,
            status=self.status,
            requested_at=self.requested_at,
        )


class PointsHistory(db.Model):
    """Audit log of point credits and deductions per member and household."""

    __tablename__ = 'points_history'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    points_delta = db.Column(db.Integer, nullable=False)  # Negative for deductions
    reason = db.Column(db.Text, nullable=False)

    # Reference to what caused this change
    task_completion_id = db.Column(db.Integer, db.ForeignKey('task_completions.id', ondelete='SET NULL'))
    redemption_request_id = db.Column(db.Integer, db.ForeignKey('redemption_requests.id'))

    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))  # Who made the change
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    # Relationships
    user = relationship('User', foreign_keys=[user_id])
    creator = relationship('User', foreign_keys=[created_by])
    redemption_request = relationship('RedemptionRequest')

    # Indexes
    __table_args__ = (
        Index('idx_points_history_user_household', 'user_id', 'household_id'),
        Index('idx_points_history_created_at', 'created_at'),
    )

    def __repr__(self):
        return f'<PointsHistory user_id={self.user_id} delta={self.points_delta}>'

    def to_dict(self) -> dict:
        """Serialize PointsHistory to dictionary for JSON/webhook responses."""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'household_id': self.household_id,
            'points_delta': self.points_delta,
            'reason': self.reason,
            'task_completion_id': self.task_completion_id,
            'redemption_request_id': self.redemption_request_id,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at)
        }

    @staticmethod
    def balance(user_id: int, household_id: int) -> int:
        """Sum of all deltas for a member in a household."""
        from sqlalchemy import func
        total = db.session.query(func.sum(PointsHistory.points_delta)).filter(
            PointsHistory.user_id == user_id,
            PointsHistory.household_id == household_id
        ).scalar()
        return total if total is not None else 0


class UserStats(db.Model):
    """Persisted stats snapshot, one row per member and household.

    Rows are always replaced as a whole from an engine StatsSnapshot.
    """

    __tablename__ = 'user_stats'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    total_tasks = db.Column(db.Integer, default=0, nullable=False)
    completed_tasks = db.Column(db.Integer, default=0, nullable=False)
    lifetime_points = db.Column(db.Integer, default=0, nullable=False)
    points_redeemed = db.Column(db.Integer, default=0, nullable=False)
    earned_points = db.Column(db.Integer, default=0, nullable=False)
    current_streak = db.Column(db.Integer, default=0, nullable=False)
    longest_streak = db.Column(db.Integer, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    level_points = db.Column(db.Integer, default=0, nullable=False)
    points_to_next_level = db.Column(db.Integer, default=0, nullable=False)
    efficiency_score = db.Column(db.Float, default=0.0, nullable=False)
    last_active_at = db.Column(db.DateTime)
    updated_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    # Relationships
    user = relationship('User', foreign_keys=[user_id])

    # Constraints
    __table_args__ = (
        UniqueConstraint('user_id', 'household_id', name='unique_user_household_stats'),
        CheckConstraint("earned_points >= 0", name='check_earned_points_non_negative'),
        Index('idx_user_stats_household', 'household_id'),
    )

    SNAPSHOT_FIELDS = (
        'total_tasks', 'completed_tasks', 'lifetime_points', 'points_redeemed',
        'earned_points', 'current_streak', 'longest_streak', 'level', 'level_points',
        'points_to_next_level', 'efficiency_score', 'last_active_at',
    )

    def __repr__(self):
        return f'<UserStats user_id={self.user_id} household_id={self.household_id} level={self.level}>'

    def replace_with(self, snapshot: StatsSnapshot) -> None:
        """Overwrite every snapshot field from an engine snapshot."""
        for field in self.SNAPSHOT_FIELDS:
            setattr(self, field, getattr(snapshot, field))
        self.updated_at = utc_now()

    def to_snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            household_id=self.household_id,
            member_id=self.user_id,
            **{field: getattr(self, field) for field in self.SNAPSHOT_FIELDS}
        )

    def to_dict(self) -> dict:
        """Serialize UserStats to dictionary for JSON/webhook responses."""
        return {
            'user_id': self.user_id,
            'user_name': self.user.name if self.user else None,
            'household_id': self.household_id,
            'total_tasks': self.total_tasks,
            'completed_tasks': self.completed_tasks,
            'lifetime_points': self.lifetime_points,
            'points_redeemed': self.points_redeemed,
            'earned_points': self.earned_points,
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'level': self.level,
            'level_points': self.level_points,
            'points_to_next_level': self.points_to_next_level,
            'efficiency_score': self.efficiency_score,
            'last_active_at': _iso(self.last_active_at),
            'updated_at': _iso(self.updated_at)
        }
