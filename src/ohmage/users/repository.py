"""
User repository for database operations.
"""

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.campaigns.models import Campaign, UserRole, UserRoleCampaign
from ohmage.classes.models import Class, UserClass
from ohmage.users.models import User


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_username(self, username: str) -> User | None:
        """Get user by login id."""
        result = await self._session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_campaigns_and_roles(self, user_id: int) -> dict[str, tuple[str, set[str]]]:
        """Get every campaign a user holds a role on.

        Returns:
            Mapping of campaign URN to ``(campaign name, roles)``.
        """
        stmt = (
            select(Campaign.urn, Campaign.name, UserRole.role)
            .join(UserRoleCampaign, UserRoleCampaign.campaign_id == Campaign.id)
            .join(UserRole, UserRole.id == UserRoleCampaign.user_role_id)
            .where(UserRoleCampaign.user_id == user_id)
        )
        result = await self._session.execute(stmt)

        names: dict[str, str] = {}
        roles: dict[str, set[str]] = defaultdict(set)
        for urn, name, role in result.all():
            names[urn] = name
            roles[urn].add(role)
        return {urn: (names[urn], roles[urn]) for urn in names}

    async def get_classes_and_roles(self, user_id: int) -> dict[str, tuple[str, str]]:
        """Get every class a user belongs to.

        Returns:
            Mapping of class URN to ``(class name, class role)``.
        """
        stmt = (
            select(Class.urn, Class.name, UserClass.class_role)
            .join(UserClass, UserClass.class_id == Class.id)
            .where(UserClass.user_id == user_id)
        )
        result = await self._session.execute(stmt)
        return {urn: (name, class_role) for urn, name, class_role in result.all()}
