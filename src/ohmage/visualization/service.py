"""
Visualization server client.

Images are rendered by a separate visualization server; this service checks
the request against the campaign and forwards it.
"""

from __future__ import annotations

from typing import Callable

import httpx

from ohmage.auth.middleware import CurrentUser
from ohmage.campaigns.repository import CampaignRepository
from ohmage.campaigns.definition import get_prompt_ids
from ohmage.config import Settings
from ohmage.shared.exceptions import (
    CampaignNotFoundError,
    PermissionDeniedError,
    ValidationError,
    VisualizationError,
)
from ohmage.shared.logging import get_logger

logger = get_logger(__name__)

PARAMETER_KEY_TOKEN = "token"
PARAMETER_KEY_CAMPAIGN_URN = "campaign_urn"
PARAMETER_KEY_WIDTH = "!width"
PARAMETER_KEY_HEIGHT = "!height"
PARAMETER_KEY_PROMPT_ID = "prompt_id"
PARAMETER_KEY_PROMPT2_ID = "prompt2_id"

TWO_D_DENSITY_PATH = "biplot/png"


class VisualizationService:
    """Validates visualization requests and fetches the rendered image."""

    def __init__(
        self,
        settings: Settings,
        repository: CampaignRepository,
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._http_client_factory = http_client_factory or (
            lambda: httpx.AsyncClient(timeout=settings.visualization_timeout_seconds)
        )

    async def ensure_user_can_read(self, user: CurrentUser, campaign_urn: str) -> None:
        """Require that the campaign exists and the user belongs to it.

        Raises:
            CampaignNotFoundError: Unknown campaign.
            PermissionDeniedError: The user holds no role on the campaign
                and is not an admin.
        """
        if await self._repository.get_id_by_urn(campaign_urn) is None:
            raise CampaignNotFoundError(campaign_urn)
        if user.admin:
            return
        if not await self._repository.get_user_roles(user.username, campaign_urn):
            raise PermissionDeniedError(
                "User does not belong to the campaign.",
                details={"username": user.username, "campaign_urn": campaign_urn},
            )

    async def ensure_prompt_exists(self, campaign_urn: str, prompt_id: str) -> None:
        """Require that a prompt id is defined in the campaign's XML."""
        campaign = await self._repository.get_by_urn(campaign_urn)
        if campaign is None:
            raise CampaignNotFoundError(campaign_urn)
        if prompt_id not in get_prompt_ids(campaign.xml):
            raise ValidationError(
                f"The prompt ID doesn't exist in the campaign's XML: {prompt_id}",
                details={"campaign_urn": campaign_urn, "prompt_id": prompt_id},
            )

    async def send_request(
        self,
        path: str,
        token: str,
        campaign_urn: str,
        width: int,
        height: int,
        parameters: dict[str, str] | None = None,
    ) -> bytes:
        """Request an image from the visualization server.

        Raises:
            VisualizationError: Transport failure or non-success status.
        """
        params = {
            PARAMETER_KEY_TOKEN: token,
            PARAMETER_KEY_CAMPAIGN_URN: campaign_urn,
            PARAMETER_KEY_WIDTH: str(width),
            PARAMETER_KEY_HEIGHT: str(height),
        }
        if parameters:
            params.update(parameters)

        url = f"{self._settings.visualization_server_url}/{path}"
        try:
            async with self._http_client_factory() as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Visualization server returned an error",
                extra={"url": url, "status_code": e.response.status_code},
            )
            raise VisualizationError(
                "The visualization server returned an error.",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error("Visualization server unreachable", extra={"url": url, "error": str(e)})
            raise VisualizationError("The visualization server could not be reached.") from e

        return response.content

    async def two_d_density(
        self,
        user: CurrentUser,
        token: str,
        campaign_urn: str,
        width: int,
        height: int,
        prompt_id: str,
        prompt2_id: str,
    ) -> bytes:
        """Render a 2D density plot of two prompts of the same campaign."""
        await self.ensure_user_can_read(user, campaign_urn)

        logger.info("Verifying that the prompt IDs exist in the campaign's XML")
        await self.ensure_prompt_exists(campaign_urn, prompt_id)
        await self.ensure_prompt_exists(campaign_urn, prompt2_id)

        return await self.send_request(
            TWO_D_DENSITY_PATH,
            token,
            campaign_urn,
            width,
            height,
            {PARAMETER_KEY_PROMPT_ID: prompt_id, PARAMETER_KEY_PROMPT2_ID: prompt2_id},
        )
