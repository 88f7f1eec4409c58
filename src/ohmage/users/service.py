"""
User service for business logic.
"""

from ohmage.campaigns.models import CampaignRole
from ohmage.classes.models import ClassRole
from ohmage.shared.exceptions import NotFoundError
from ohmage.shared.logging import get_logger
from ohmage.users.repository import UserRepository
from ohmage.users.schemas import UserSummary

logger = get_logger(__name__)


class UserService:
    """Service for user information."""

    def __init__(self, repository: UserRepository) -> None:
        """Initialize service with repository."""
        self._repository = repository

    async def get_user_summary(self, username: str) -> UserSummary:
        """Gather a user's campaigns, classes and roles.

        Raises:
            NotFoundError: The user does not exist.
        """
        user = await self._repository.get_by_username(username)
        if user is None:
            raise NotFoundError(
                f"User not found: {username}",
                code="USER_NOT_FOUND",
                details={"username": username},
            )

        campaigns = await self._repository.get_campaigns_and_roles(user.id)
        classes = await self._repository.get_classes_and_roles(user.id)

        campaign_roles = set().union(*(roles for _, roles in campaigns.values()))
        class_roles = {class_role for _, class_role in classes.values()}

        logger.debug(
            "User summary gathered",
            extra={"username": username, "campaigns": len(campaigns), "classes": len(classes)},
        )
        return UserSummary(
            campaign_creation_privilege=user.campaign_creation_privilege,
            campaigns={urn: name for urn, (name, _) in campaigns.items()},
            classes={urn: name for urn, (name, _) in classes.items()},
            campaign_roles=[r for r in CampaignRole if r.value in campaign_roles],
            class_roles=[r for r in ClassRole if r.value in class_roles],
        )
