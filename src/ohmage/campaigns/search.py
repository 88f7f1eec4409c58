"""
Campaign search for administrators.
"""

from datetime import date, datetime, time, timezone

from ohmage.auth.middleware import CurrentUser
from ohmage.campaigns.models import Campaign
from ohmage.campaigns.repository import CampaignRepository
from ohmage.campaigns.schemas import CampaignSearchRequest
from ohmage.shared.exceptions import PermissionDeniedError, ValidationError
from ohmage.shared.logging import get_logger

logger = get_logger(__name__)


def _start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


class CampaignSearchService:
    """Filters every campaign in the system by the supplied criteria."""

    def __init__(self, repository: CampaignRepository) -> None:
        self._repository = repository

    async def search(self, user: CurrentUser, criteria: CampaignSearchRequest) -> list[Campaign]:
        """Search campaigns.

        Raises:
            PermissionDeniedError: The requester is not an admin.
            ValidationError: The date range is inverted.
        """
        if not user.admin:
            raise PermissionDeniedError(
                "Only administrators may search campaigns.",
                details={"username": user.username},
            )
        if criteria.start_date and criteria.end_date and criteria.start_date > criteria.end_date:
            raise ValidationError(
                "start_date must not be after end_date",
                details={
                    "start_date": criteria.start_date.isoformat(),
                    "end_date": criteria.end_date.isoformat(),
                },
            )

        campaigns = await self._repository.search(
            urn=criteria.campaign_urn,
            name=criteria.campaign_name,
            description=criteria.description,
            xml=criteria.xml,
            authored_by=criteria.authored_by,
            start=_start_of_day(criteria.start_date) if criteria.start_date else None,
            end=_end_of_day(criteria.end_date) if criteria.end_date else None,
            privacy_state=criteria.privacy_state.value if criteria.privacy_state else None,
            running_state=criteria.running_state.value if criteria.running_state else None,
        )
        logger.info(
            "Campaign search completed",
            extra={"username": user.username, "matches": len(campaigns)},
        )
        return campaigns
