"""
Authentication dependency for bearer token validation.

This module exposes:
- CurrentUser
- get_current_user
- CurrentUserDep (FastAPI dependency alias)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ohmage.auth.jwt import JWTHandler
from ohmage.config import Settings, get_settings
from ohmage.shared.database import get_db_session
from ohmage.shared.exceptions import AuthenticationError
from ohmage.shared.logging import get_logger
from ohmage.users.repository import UserRepository

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Login id")
    admin: bool = Field(False, description="Whether the user is an administrator")


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Resolve the requesting user from the bearer token.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or an
            unknown or disabled account.
    """
    if credentials is None:
        logger.warning(
            "Missing authentication credentials",
            extra={
                "endpoint": str(request.url.path),
                "method": request.method,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        raise AuthenticationError(
            "Authentication credentials required",
            code="MISSING_CREDENTIALS",
        )

    payload = JWTHandler(settings).validate_access_token(credentials.credentials)
    username = payload["sub"]

    user = await UserRepository(session).get_by_username(username)
    if user is None:
        raise AuthenticationError("Unknown user", code="USER_NOT_FOUND", details={"username": username})
    if not user.enabled:
        logger.warning("Disabled account attempted access", extra={"username": username})
        raise AuthenticationError("Account is disabled", code="ACCOUNT_DISABLED")

    return CurrentUser(id=user.id, username=user.username, admin=user.admin)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
