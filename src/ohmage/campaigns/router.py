"""
Campaign API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ohmage.auth.middleware import CurrentUserDep
from ohmage.campaigns.repository import CampaignRepository
from ohmage.campaigns.schemas import (
    CampaignSearchRequest,
    CampaignSearchResponse,
    CampaignSummary,
    CampaignUpdateRequest,
    OperationResponse,
)
from ohmage.campaigns.search import CampaignSearchService
from ohmage.campaigns.update import CampaignUpdateService
from ohmage.shared.database import get_db_session, get_session_factory
from ohmage.shared.exceptions import CampaignNotFoundError
from ohmage.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/app/campaign", tags=["campaigns"])


def get_campaign_update_service(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> CampaignUpdateService:
    """Dependency for the campaign update service."""
    return CampaignUpdateService(session_factory)


def get_campaign_search_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CampaignSearchService:
    """Dependency for the campaign search service."""
    return CampaignSearchService(CampaignRepository(session))


@router.post(
    "/update",
    response_model=OperationResponse,
    responses={
        400: {"description": "Invalid parameters"},
        401: {"description": "Not authenticated"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Campaign or class not found"},
    },
)
async def update_campaign(
    data: CampaignUpdateRequest,
    current_user: CurrentUserDep,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[CampaignUpdateService, Depends(get_campaign_update_service)],
) -> OperationResponse:
    """Update a campaign.

    Only the supplied fields change. The XML may only be replaced by a
    supervisor, or by an author while the campaign has no responses. The
    class list, when given, is the complete set of classes the campaign
    should belong to afterwards.
    """
    logger.info(
        "Updating campaign",
        extra={
            "username": current_user.username,
            "campaign_urn": data.campaign_urn,
            "fields": sorted(data.model_fields_set - {"campaign_urn"}),
        },
    )

    if await CampaignRepository(session).get_id_by_urn(data.campaign_urn) is None:
        raise CampaignNotFoundError(data.campaign_urn)

    await service.update_campaign(data.campaign_urn, current_user.username, data.to_changes())
    return OperationResponse()


@router.post(
    "/search",
    response_model=CampaignSearchResponse,
    responses={
        400: {"description": "Invalid parameters"},
        401: {"description": "Not authenticated"},
        403: {"description": "Requester is not an administrator"},
    },
)
async def search_campaigns(
    criteria: CampaignSearchRequest,
    current_user: CurrentUserDep,
    service: Annotated[CampaignSearchService, Depends(get_campaign_search_service)],
) -> CampaignSearchResponse:
    """Search every campaign in the system (administrators only).

    Missing or empty filters are not applied; with no filters every
    campaign is returned.
    """
    campaigns = await service.search(current_user, criteria)
    return CampaignSearchResponse(
        data={c.urn: CampaignSummary.model_validate(c) for c in campaigns},
    )
