"""
Visualization API router.
"""

from typing import Annotated, Callable

import httpx
from fastapi import APIRouter, Depends, Query, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.auth.middleware import CurrentUserDep, security
from ohmage.campaigns.repository import CampaignRepository
from ohmage.config import Settings, get_settings
from ohmage.shared.database import get_db_session
from ohmage.shared.exceptions import ValidationError
from ohmage.shared.logging import get_logger
from ohmage.shared.validators import validate_urn
from ohmage.visualization.service import VisualizationService

logger = get_logger(__name__)

router = APIRouter(prefix="/app/viz", tags=["visualization"])


def get_http_client_factory() -> Callable[[], httpx.AsyncClient] | None:
    """Dependency for the outbound HTTP client; None selects the default client."""
    return None


def get_visualization_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    http_client_factory: Annotated[
        Callable[[], httpx.AsyncClient] | None, Depends(get_http_client_factory)
    ],
) -> VisualizationService:
    """Dependency for visualization service."""
    return VisualizationService(settings, CampaignRepository(session), http_client_factory)


@router.get(
    "/2d_density/read",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "Rendered plot"},
        400: {"description": "Invalid parameters or unknown prompt"},
        401: {"description": "Not authenticated"},
        403: {"description": "User does not belong to the campaign"},
        404: {"description": "Campaign not found"},
        502: {"description": "Visualization server failure"},
    },
)
async def read_two_d_density(
    current_user: CurrentUserDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[VisualizationService, Depends(get_visualization_service)],
    campaign_urn: Annotated[str, Query(description="Campaign URN")],
    prompt_id: Annotated[str, Query(min_length=1, description="First prompt ID")],
    prompt2_id: Annotated[str, Query(min_length=1, description="Second prompt ID")],
    width: Annotated[int, Query(gt=0, le=4096, description="Image width in pixels")],
    height: Annotated[int, Query(gt=0, le=4096, description="Image height in pixels")],
) -> Response:
    """Render a 2D density plot of two prompts in the same campaign."""
    try:
        campaign_urn = validate_urn(campaign_urn)
    except ValueError as e:
        raise ValidationError(str(e), details={"campaign_urn": campaign_urn}) from e

    logger.info(
        "Servicing the 2D density visualization request",
        extra={"username": current_user.username, "campaign_urn": campaign_urn},
    )

    # get_current_user has already rejected requests without credentials.
    token = credentials.credentials if credentials else ""
    image = await service.two_d_density(
        current_user,
        token,
        campaign_urn,
        width,
        height,
        prompt_id,
        prompt2_id,
    )
    return Response(content=image, media_type="image/png")
