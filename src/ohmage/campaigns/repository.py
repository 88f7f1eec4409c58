"""
Campaign repository for database operations.

Provides the data access layer for campaigns, their class associations and
the per-user campaign role grants.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.campaigns.models import (
    Campaign,
    CampaignClass,
    UserRole,
    UserRoleCampaign,
)
from ohmage.classes.models import Class
from ohmage.shared.logging import get_logger
from ohmage.surveys.models import SurveyResponse
from ohmage.users.models import User

logger = get_logger(__name__)


class CampaignRepository:
    """Repository for campaign database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self._session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_urn(self, campaign_urn: str) -> Campaign | None:
        """Get campaign by URN."""
        result = await self._session.execute(
            select(Campaign).where(Campaign.urn == campaign_urn)
        )
        return result.scalar_one_or_none()

    async def get_id_by_urn(self, campaign_urn: str) -> int | None:
        """Get the primary key of a campaign by URN."""
        result = await self._session.execute(
            select(Campaign.id).where(Campaign.urn == campaign_urn)
        )
        return result.scalar_one_or_none()

    async def get_user_roles(self, username: str, campaign_urn: str) -> set[str]:
        """Get the roles a user holds on a campaign.

        Args:
            username: Login id of the user.
            campaign_urn: Campaign URN.

        Returns:
            Role names; empty when the user has no association.
        """
        stmt = (
            select(UserRole.role)
            .join(UserRoleCampaign, UserRoleCampaign.user_role_id == UserRole.id)
            .join(User, User.id == UserRoleCampaign.user_id)
            .join(Campaign, Campaign.id == UserRoleCampaign.campaign_id)
            .where(User.username == username)
            .where(Campaign.urn == campaign_urn)
        )
        result = await self._session.execute(stmt)
        return set(result.scalars().all())

    async def count_survey_responses(self, campaign_urn: str) -> int:
        """Count uploaded survey responses for a campaign."""
        stmt = (
            select(func.count(SurveyResponse.id))
            .join(Campaign, Campaign.id == SurveyResponse.campaign_id)
            .where(Campaign.urn == campaign_urn)
        )
        result = await self._session.execute(stmt)
        count = result.scalar()
        return count if count is not None else 0

    async def get_class_urns(self, campaign_urn: str) -> list[str]:
        """Get the URNs of every class associated with a campaign."""
        stmt = (
            select(Class.urn)
            .join(CampaignClass, CampaignClass.class_id == Class.id)
            .join(Campaign, Campaign.id == CampaignClass.campaign_id)
            .where(Campaign.urn == campaign_urn)
            .order_by(Class.urn)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_role_id(self, role: str) -> int | None:
        """Get the primary key of a campaign role name."""
        result = await self._session.execute(
            select(UserRole.id).where(UserRole.role == role)
        )
        return result.scalar_one_or_none()

    async def search(
        self,
        *,
        urn: str | None = None,
        name: str | None = None,
        description: str | None = None,
        xml: str | None = None,
        authored_by: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        privacy_state: str | None = None,
        running_state: str | None = None,
    ) -> list[Campaign]:
        """Find campaigns matching every supplied filter.

        Text filters are case-insensitive substring matches; ``start`` and
        ``end`` are inclusive bounds on the creation timestamp.
        """
        query = select(Campaign)

        substring_filters = (
            (Campaign.urn, urn),
            (Campaign.name, name),
            (Campaign.description, description),
            (Campaign.xml, xml),
            (Campaign.authored_by, authored_by),
        )
        for column, value in substring_filters:
            if value:
                query = query.where(column.icontains(value, autoescape=True))

        if start is not None:
            query = query.where(Campaign.creation_timestamp >= start)
        if end is not None:
            query = query.where(Campaign.creation_timestamp <= end)
        if privacy_state:
            query = query.where(Campaign.privacy_state == privacy_state)
        if running_state:
            query = query.where(Campaign.running_state == running_state)

        result = await self._session.execute(query.order_by(Campaign.urn))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _update_columns(self, campaign_urn: str, **values: Any) -> None:
        await self._session.execute(
            update(Campaign).where(Campaign.urn == campaign_urn).values(**values)
        )

    async def update_running_state(self, campaign_urn: str, running_state: str) -> None:
        """Set the running state of a campaign."""
        await self._update_columns(campaign_urn, running_state=running_state)

    async def update_privacy_state(self, campaign_urn: str, privacy_state: str) -> None:
        """Set the privacy state of a campaign."""
        await self._update_columns(campaign_urn, privacy_state=privacy_state)

    async def update_description(self, campaign_urn: str, description: str) -> None:
        """Set the description of a campaign."""
        await self._update_columns(campaign_urn, description=description)

    async def update_xml(self, campaign_urn: str, xml: str) -> None:
        """Replace the XML definition of a campaign."""
        await self._update_columns(campaign_urn, xml=xml)

    async def add_class(self, campaign_id: int, class_id: int) -> None:
        """Associate a class with a campaign."""
        await self._session.execute(
            insert(CampaignClass).values(campaign_id=campaign_id, class_id=class_id)
        )

    async def remove_class(self, campaign_id: int, class_id: int) -> None:
        """Remove the association between a class and a campaign."""
        await self._session.execute(
            delete(CampaignClass)
            .where(CampaignClass.campaign_id == campaign_id)
            .where(CampaignClass.class_id == class_id)
        )

    async def grant_role(self, user_id: int, campaign_id: int, role_id: int) -> bool:
        """Grant a campaign role to a user unless already granted.

        Returns:
            True when a new grant row was written.
        """
        existing = await self._session.execute(
            select(UserRoleCampaign.id)
            .where(UserRoleCampaign.user_id == user_id)
            .where(UserRoleCampaign.campaign_id == campaign_id)
            .where(UserRoleCampaign.user_role_id == role_id)
        )
        if existing.scalar_one_or_none() is not None:
            return False

        await self._session.execute(
            insert(UserRoleCampaign).values(
                user_id=user_id,
                campaign_id=campaign_id,
                user_role_id=role_id,
            )
        )
        return True

    async def revoke_all_roles(self, user_id: int, campaign_id: int) -> int:
        """Remove every campaign role a user holds on a campaign.

        Returns:
            Number of grant rows deleted.
        """
        result = await self._session.execute(
            delete(UserRoleCampaign)
            .where(UserRoleCampaign.user_id == user_id)
            .where(UserRoleCampaign.campaign_id == campaign_id)
        )
        return result.rowcount or 0
