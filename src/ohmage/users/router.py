"""
User API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.auth.middleware import CurrentUserDep
from ohmage.shared.database import get_db_session
from ohmage.shared.logging import get_logger
from ohmage.users.repository import UserRepository
from ohmage.users.schemas import UserInfoResponse
from ohmage.users.service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/app", tags=["users"])


def get_user_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> UserService:
    """Dependency for user service."""
    return UserService(UserRepository(session))


@router.api_route("/user_info/read", methods=["GET", "POST"], response_model=UserInfoResponse)
async def read_user_info(
    current_user: CurrentUserDep,
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserInfoResponse:
    """Return the requesting user's campaign creation privilege, campaigns,
    classes and the union of their roles."""
    logger.info("Reading user info", extra={"username": current_user.username})
    summary = await service.get_user_summary(current_user.username)
    return UserInfoResponse(data={current_user.username: summary})
