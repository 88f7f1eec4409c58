"""
Bearer token authentication.
"""

from ohmage.auth.jwt import JWTHandler
from ohmage.auth.middleware import CurrentUser, CurrentUserDep, get_current_user

__all__ = ["CurrentUser", "CurrentUserDep", "JWTHandler", "get_current_user"]
