"""Authentication module."""

from src.auth.dependencies import get_current_user, require_manager, require_owner
from src.auth.jwt import create_access_token, verify_token

__all__ = [
    "create_access_token",
    "verify_token",
    "get_current_user",
    "require_owner",
    "require_manager",
]
