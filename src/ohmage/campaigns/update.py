"""
Transactional campaign update.

Applies a sparse set of changes to a campaign (running state, privacy state,
description, XML and the list of associated classes) inside one database
transaction. Either every supplied change is committed or none is.

Class reconciliation keeps campaign roles in step with class rosters:

- a class that is added grants each of its members ``participant`` plus
  ``supervisor`` (privileged members) or ``analyst`` (restricted members);
- a class that is removed revokes every campaign role of each of its members.

A requester who is an author but not a supervisor may only update a campaign
that has no survey responses, whether or not the XML is part of the update.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ohmage.campaigns.models import CampaignRole, PrivacyState, RunningState
from ohmage.campaigns.repository import CampaignRepository
from ohmage.classes.models import ClassRole
from ohmage.classes.repository import ClassRepository
from ohmage.shared.exceptions import (
    CampaignNotFoundError,
    ClassNotFoundError,
    DataAccessError,
    DataStoreError,
    InvalidStateError,
    PermissionDeniedError,
)
from ohmage.shared.logging import get_logger

logger = get_logger(__name__)

# Campaign roles granted, in addition to participant, for each class role.
CLASS_ROLE_GRANTS: dict[ClassRole, CampaignRole] = {
    ClassRole.PRIVILEGED: CampaignRole.SUPERVISOR,
    ClassRole.RESTRICTED: CampaignRole.ANALYST,
}

MODIFYING_ROLES = frozenset({CampaignRole.SUPERVISOR.value, CampaignRole.AUTHOR.value})


@dataclass(frozen=True)
class CampaignChanges:
    """Changes requested for a campaign; ``None`` leaves a field untouched."""

    running_state: RunningState | None = None
    privacy_state: PrivacyState | None = None
    description: str | None = None
    xml: str | None = None
    class_urns: Sequence[str] | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.running_state is None
            and self.privacy_state is None
            and self.description is None
            and self.xml is None
            and self.class_urns is None
        )


class CampaignUpdateService:
    """Applies CampaignChanges atomically.

    The session factory is the only storage handle; each call opens its own
    session and transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def update_campaign(
        self,
        campaign_urn: str,
        username: str,
        changes: CampaignChanges,
    ) -> None:
        """Apply changes to a campaign on behalf of a user.

        Args:
            campaign_urn: URN of the campaign to update.
            username: Login id of the requesting user.
            changes: Fields to change.

        Raises:
            PermissionDeniedError: The user may not modify the campaign or
                its XML.
            InvalidStateError: A class member has an unknown class role, or
                a campaign role is missing from the role table.
            ClassNotFoundError: A requested class does not exist.
            DataStoreError: The database failed.
        """
        log_fields = {"campaign_urn": campaign_urn, "username": username}
        logger.info("Campaign update started", extra=log_fields)

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    campaigns = CampaignRepository(session)
                    classes = ClassRepository(session)

                    roles = await campaigns.get_user_roles(username, campaign_urn)
                    if not roles & MODIFYING_ROLES:
                        raise PermissionDeniedError(
                            "User has insufficient permissions to modify this campaign.",
                            details=log_fields,
                        )

                    if changes.running_state is not None:
                        await campaigns.update_running_state(
                            campaign_urn, RunningState(changes.running_state).value
                        )
                    if changes.privacy_state is not None:
                        await campaigns.update_privacy_state(
                            campaign_urn, PrivacyState(changes.privacy_state).value
                        )
                    if changes.description is not None:
                        await campaigns.update_description(campaign_urn, changes.description)
                    await self._check_xml_permission(campaigns, campaign_urn, roles)
                    if changes.xml is not None:
                        await campaigns.update_xml(campaign_urn, changes.xml)
                    if changes.class_urns is not None:
                        await self._update_class_list(
                            campaigns, classes, campaign_urn, changes.class_urns
                        )
        except DataAccessError as e:
            logger.warning(
                "Campaign update rolled back",
                extra={**log_fields, "error_code": e.code, "error": e.message},
            )
            raise
        except SQLAlchemyError as e:
            logger.exception("Campaign update rolled back after database error", extra=log_fields)
            raise DataStoreError("Error while executing the campaign update.", details=log_fields) from e

        logger.info("Campaign update committed", extra=log_fields)

    @staticmethod
    async def _check_xml_permission(
        campaigns: CampaignRepository,
        campaign_urn: str,
        roles: set[str],
    ) -> None:
        # Runs on every update, XML or not: an author-only requester on an
        # answered campaign may not change anything.
        if CampaignRole.SUPERVISOR.value not in roles:
            if (
                CampaignRole.AUTHOR.value not in roles
                or await campaigns.count_survey_responses(campaign_urn) > 0
            ):
                raise PermissionDeniedError(
                    "User is only an author and responses exist; "
                    "therefore, they are not allowed to modify the XML.",
                    details={"campaign_urn": campaign_urn},
                )

    async def _update_class_list(
        self,
        campaigns: CampaignRepository,
        classes: ClassRepository,
        campaign_urn: str,
        class_urns: Sequence[str],
    ) -> None:
        campaign_id = await campaigns.get_id_by_urn(campaign_urn)
        if campaign_id is None:
            raise CampaignNotFoundError(campaign_urn)

        current = set(await campaigns.get_class_urns(campaign_urn))
        requested = list(dict.fromkeys(class_urns))
        removed = sorted(current.difference(requested))
        added = [urn for urn in requested if urn not in current]

        # Removal first, the reverse of the legacy ohmage DAO order (add, then
        # remove): a member of both a removed and an added class keeps the
        # grants from the added one.
        for class_urn in removed:
            class_id = await self._require_class_id(classes, class_urn)
            await campaigns.remove_class(campaign_id, class_id)
            for member in await classes.get_members(class_urn):
                await campaigns.revoke_all_roles(member.user_id, campaign_id)
            logger.info(
                "Class dissociated from campaign",
                extra={"campaign_urn": campaign_urn, "class_urn": class_urn},
            )

        if not added:
            return

        role_ids = await self._load_role_ids(campaigns)
        for class_urn in added:
            class_id = await self._require_class_id(classes, class_urn)
            await campaigns.add_class(campaign_id, class_id)
            for member in await classes.get_members(class_urn):
                try:
                    extra_role = CLASS_ROLE_GRANTS[ClassRole(member.class_role)]
                except ValueError:
                    raise InvalidStateError(
                        f"Unknown user-class role: {member.class_role}",
                        details={"class_urn": class_urn, "user_id": member.user_id},
                    ) from None
                for role in (CampaignRole.PARTICIPANT, extra_role):
                    await campaigns.grant_role(member.user_id, campaign_id, role_ids[role])
            logger.info(
                "Class associated with campaign",
                extra={"campaign_urn": campaign_urn, "class_urn": class_urn},
            )

    @staticmethod
    async def _require_class_id(classes: ClassRepository, class_urn: str) -> int:
        class_id = await classes.get_id_by_urn(class_urn)
        if class_id is None:
            raise ClassNotFoundError(class_urn)
        return class_id

    @staticmethod
    async def _load_role_ids(campaigns: CampaignRepository) -> dict[CampaignRole, int]:
        role_ids: dict[CampaignRole, int] = {}
        for role in (CampaignRole.PARTICIPANT, *CLASS_ROLE_GRANTS.values()):
            role_id = await campaigns.get_role_id(role.value)
            if role_id is None:
                raise InvalidStateError(
                    f"Campaign role missing from the role table: {role.value}",
                    details={"role": role.value},
                )
            role_ids[role] = role_id
        return role_ids
