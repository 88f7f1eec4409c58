"""JWT token handling for session management."""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as PyJWTInvalidTokenError

from ohmage.config import Settings, get_settings
from ohmage.shared.exceptions import InvalidTokenError, TokenExpiredError
from ohmage.shared.logging import get_logger

logger = get_logger(__name__)


class JWTHandler:
    """Handler for creating and validating JWT tokens."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def create_access_token(
        self,
        username: str,
        additional_claims: dict[str, Any] | None = None,
    ) -> str:
        """Create a new access token for a user."""
        now = datetime.now(timezone.utc)
        expires = now + timedelta(minutes=self._settings.jwt_access_token_expire_minutes)

        payload = {
            "sub": username,
            "type": "access",
            "iat": now,
            "exp": expires,
        }

        if additional_claims:
            payload.update(additional_claims)

        return jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm,
        )

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a JWT token."""
        try:
            return jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm],
            )
        except ExpiredSignatureError as e:
            logger.info("Token expired")
            raise TokenExpiredError() from e
        except PyJWTInvalidTokenError as e:
            logger.warning("Invalid token", extra={"error": str(e)})
            raise InvalidTokenError(details={"error": str(e)}) from e

    def validate_access_token(self, token: str) -> dict[str, Any]:
        """Validate an access token and return its payload."""
        payload = self.decode_token(token)

        if payload.get("type") != "access":
            raise InvalidTokenError(
                "Invalid token type",
                details={"expected": "access", "got": payload.get("type")},
            )
        if not payload.get("sub"):
            raise InvalidTokenError("Token missing subject")

        return payload

    def get_token_expiry(self) -> int:
        """Get access token expiry in seconds."""
        return self._settings.jwt_access_token_expire_minutes * 60
