"""Household membership service.

Membership is the boundary for every other operation: tasks, stats and
redemptions are only visible to members of the household they belong to.
"""

import logging
from typing import List, Optional

from chorequest.models import (
    db,
    Household,
    HouseholdMember,
    PointsHistory,
    RedemptionRequest,
    User,
    UserStats,
)
from chorequest.services.errors import BadRequestError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class HouseholdService:
    """Service for households and their members."""

    @staticmethod
    def get_household(household_id: int) -> Household:
        """Get a household by ID or raise NotFoundError."""
        household = db.session.get(Household, household_id)
        if not household:
            raise NotFoundError(f'Household {household_id} not found')
        return household

    @staticmethod
    def get_user(user_id: int) -> User:
        """Get a user by ID or raise NotFoundError."""
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError(f'User {user_id} not found')
        return user

    @staticmethod
    def require_member(household_id: int, user_id: int) -> HouseholdMember:
        """Return the user's membership or raise ForbiddenError."""
        household = HouseholdService.get_household(household_id)
        membership = household.get_membership(user_id)
        if not membership:
            raise ForbiddenError('Not a member of this household')
        return membership

    @staticmethod
    def require_admin(household_id: int, user_id: int) -> HouseholdMember:
        """Return the user's admin membership or raise ForbiddenError."""
        membership = HouseholdService.require_member(household_id, user_id)
        if not membership.is_admin:
            raise ForbiddenError('Household admin privileges required')
        return membership

    @staticmethod
    def create_household(name: str, creator_id: int) -> Household:
        """Create a household; the creator becomes its first admin."""
        creator = HouseholdService.get_user(creator_id)

        household = Household(name=name, created_by=creator.id)
        db.session.add(household)
        db.session.flush()

        db.session.add(HouseholdMember(household_id=household.id, user_id=creator.id, role='admin'))
        db.session.commit()

        logger.info(f"Household {household.id} created by user {creator.id}")
        return household

    @staticmethod
    def add_member(household_id: int, email: str, added_by: int, name: Optional[str] = None,
                   role: str = 'member') -> HouseholdMember:
        """
        Add a user to a household, creating the user profile if needed.

        Raises:
            NotFoundError: Household not found
            ForbiddenError: Caller is not a household admin
            BadRequestError: User is already a member
        """
        HouseholdService.require_admin(household_id, added_by)

        user = User.query.filter_by(email=email).first()
        if not user:
            user = User(email=email, name=name or email.split('@')[0])
            db.session.add(user)
            db.session.flush()
        elif HouseholdMember.query.filter_by(household_id=household_id, user_id=user.id).first():
            raise BadRequestError(f'{user.name} is already a member of this household')

        membership = HouseholdMember(household_id=household_id, user_id=user.id, role=role)
        db.session.add(membership)
        db.session.commit()

        logger.info(f"User {user.id} joined household {household_id} as {role}")
        return membership

    @staticmethod
    def list_members(household_id: int) -> List[HouseholdMember]:
        HouseholdService.get_household(household_id)
        return HouseholdMember.query.filter_by(household_id=household_id) \
            .order_by(HouseholdMember.joined_at, HouseholdMember.id).all()

    @staticmethod
    def member_ids(household_id: int) -> List[int]:
        return [m.user_id for m in HouseholdMember.query.filter_by(household_id=household_id).all()]

    @staticmethod
    def admin_count(household_id: int) -> int:
        return HouseholdMember.query.filter_by(household_id=household_id, role='admin').count()

    @staticmethod
    def update_household(household_id: int, name: str, updated_by: int) -> Household:
        """Rename a household (household admins only)."""
        HouseholdService.require_admin(household_id, updated_by)
        household = HouseholdService.get_household(household_id)
        household.name = name
        db.session.commit()

        logger.info(f"Household {household_id} renamed by user {updated_by}")
        return household

    @staticmethod
    def delete_household(household_id: int, deleted_by: int) -> None:
        """
        Delete a household and everything recorded in it.

        Members, tasks and their completions, redemption requests, points
        history and stats rows all go with it.

        Raises:
            NotFoundError: Household not found
            ForbiddenError: Caller is not a household admin
        """
        HouseholdService.require_admin(household_id, deleted_by)
        household = HouseholdService.get_household(household_id)

        # History rows reference completions and redemptions, so they go first
        for model in (PointsHistory, UserStats, RedemptionRequest):
            model.query.filter_by(household_id=household_id).delete(synchronize_session=False)
        db.session.delete(household)
        db.session.commit()

        logger.info(f"Household {household_id} deleted by user {deleted_by}")

    @staticmethod
    def remove_member(household_id: int, user_id: int, removed_by: int) -> None:
        """
        Remove a member from a household.

        Admins may remove anyone; members may only remove themselves. The
        last admin cannot be removed. The member's stats row for the
        household is dropped, so they leave its leaderboards.

        Raises:
            NotFoundError: Household not found, or the user is not a member
            ForbiddenError: Caller may not remove this member
            BadRequestError: Member is the household's last admin
        """
        caller = HouseholdService.require_member(household_id, removed_by)
        if not caller.is_admin and removed_by != user_id:
            raise ForbiddenError('Not authorized to remove this member')

        membership = HouseholdMember.query.filter_by(household_id=household_id, user_id=user_id).first()
        if not membership:
            raise NotFoundError('User is not a member of this household')
        if membership.is_admin and HouseholdService.admin_count(household_id) == 1:
            raise BadRequestError('Cannot remove the last admin from household')

        db.session.delete(membership)
        UserStats.query.filter_by(household_id=household_id, user_id=user_id).delete(synchronize_session=False)
        db.session.commit()

        logger.info(f"User {user_id} removed from household {household_id} by user {removed_by}")

    @staticmethod
    def update_member_role(household_id: int, user_id: int, role: str, updated_by: int) -> HouseholdMember:
        """
        Change a member's role (household admins only).

        Raises:
            NotFoundError: Household not found, or the user is not a member
            ForbiddenError: Caller is not a household admin
            BadRequestError: Demoting the household's last admin
        """
        HouseholdService.require_admin(household_id, updated_by)

        membership = HouseholdMember.query.filter_by(household_id=household_id, user_id=user_id).first()
        if not membership:
            raise NotFoundError('User is not a member of this household')
        if membership.is_admin and role != 'admin' and HouseholdService.admin_count(household_id) == 1:
            raise BadRequestError('Cannot demote the last admin from household')

        membership.role = role
        db.session.commit()

        logger.info(f"User {user_id} is now {role} in household {household_id}")
        return membership
