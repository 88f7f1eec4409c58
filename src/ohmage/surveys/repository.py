"""
Survey response repository.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.surveys.models import SurveyResponse
from ohmage.users.models import User


@dataclass(frozen=True)
class StoredSurveyResponse:
    """An uploaded survey response with its owner's login id."""

    username: str
    survey_id: str
    response: str


class SurveyResponseRepository:
    """Reads uploaded survey responses."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_campaign(
        self,
        campaign_id: int,
        username: str | None = None,
    ) -> list[StoredSurveyResponse]:
        """Responses uploaded to a campaign, oldest first.

        Args:
            campaign_id: Campaign primary key.
            username: Restrict to one user's responses.
        """
        stmt = (
            select(User.username, SurveyResponse.survey_id, SurveyResponse.response)
            .join(User, User.id == SurveyResponse.user_id)
            .where(SurveyResponse.campaign_id == campaign_id)
            .order_by(SurveyResponse.upload_timestamp, SurveyResponse.id)
        )
        if username is not None:
            stmt = stmt.where(User.username == username)
        result = await self._session.execute(stmt)
        return [StoredSurveyResponse(*row) for row in result.all()]
