"""
Custom exception classes for the application.
"""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


# Authentication errors
class AuthenticationError(AppException):
    """Raised when authentication fails."""

    def __init__(
        self,
        message: str = "Authentication failed",
        code: str = "AUTH_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class TokenExpiredError(AuthenticationError):
    """Raised when a token has expired."""

    def __init__(
        self,
        message: str = "Token has expired",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "TOKEN_EXPIRED", details)


class InvalidTokenError(AuthenticationError):
    """Raised when a token is invalid."""

    def __init__(
        self,
        message: str = "Invalid token",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "INVALID_TOKEN", details)


# Request errors
class NotFoundError(AppException):
    """Raised when a requested resource does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        code: str = "NOT_FOUND",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ValidationError(AppException):
    """Raised when business validation fails (distinct from pydantic ValidationError)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class VisualizationError(AppException):
    """Raised when the visualization server cannot produce an image."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VISUALIZATION_ERROR", details)


# =============================================================================
# Data access errors: everything the campaign update transaction can raise.
# Callers that only care about "succeeded or nothing changed" catch
# DataAccessError.
# =============================================================================


class DataAccessError(AppException):
    """Raised when a data access operation fails and was rolled back."""

    def __init__(
        self,
        message: str,
        code: str = "DATA_ACCESS_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class PermissionDeniedError(DataAccessError):
    """Raised when the requester lacks the campaign role an operation needs."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "PERMISSION_DENIED", details)


class InvalidStateError(DataAccessError):
    """Raised when stored data violates a closed set of allowed values."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "INVALID_STATE", details)


class DataStoreError(DataAccessError):
    """Raised when the underlying database fails."""

    def __init__(self, message: str = "Data store failure", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "DATA_STORE_FAILURE", details)


class CampaignNotFoundError(DataAccessError):
    """Raised when a campaign URN does not exist."""

    def __init__(self, campaign_urn: str) -> None:
        self.campaign_urn = campaign_urn
        super().__init__(
            f"Campaign not found: {campaign_urn}",
            "CAMPAIGN_NOT_FOUND",
            {"campaign_urn": campaign_urn},
        )


class ClassNotFoundError(DataAccessError):
    """Raised when a class URN does not exist."""

    def __init__(self, class_urn: str) -> None:
        self.class_urn = class_urn
        super().__init__(
            f"Class not found: {class_urn}",
            "CLASS_NOT_FOUND",
            {"class_urn": class_urn},
        )
