"""
Survey response API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.auth.middleware import CurrentUserDep
from ohmage.campaigns.repository import CampaignRepository
from ohmage.shared.database import get_db_session
from ohmage.shared.exceptions import ValidationError
from ohmage.shared.validators import validate_urn
from ohmage.surveys.repository import SurveyResponseRepository
from ohmage.surveys.schemas import PromptResponseReadResponse
from ohmage.surveys.service import SurveyResponseService

router = APIRouter(prefix="/app/survey_response", tags=["survey responses"])


def get_survey_response_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SurveyResponseService:
    """Dependency for survey response service."""
    return SurveyResponseService(CampaignRepository(session), SurveyResponseRepository(session))


@router.get("/read", response_model=PromptResponseReadResponse)
async def read_prompt_responses(
    current_user: CurrentUserDep,
    service: Annotated[SurveyResponseService, Depends(get_survey_response_service)],
    campaign_urn: Annotated[str, Query(description="Campaign URN")],
    prompt_id: Annotated[str, Query(min_length=1, description="Multiple-choice custom prompt ID")],
) -> PromptResponseReadResponse:
    """Return the answers to a multiple-choice custom prompt."""
    try:
        campaign_urn = validate_urn(campaign_urn)
    except ValueError as e:
        raise ValidationError(str(e), details={"campaign_urn": campaign_urn}) from e

    records = await service.read_prompt_responses(current_user, campaign_urn, prompt_id)
    return PromptResponseReadResponse(data=records)
