"""Authentication dependencies for FastAPI"""

from typing import Optional

from authlib.jose.errors import InvalidTokenError
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eventhub.auth.jwt_utils import jwt_utils
from eventhub.auth.models import AuthUser
from eventhub.config import config
from eventhub.logging_config import get_logger
from eventhub.models.user import Role

# auto_error=False so a missing header yields our own 401 instead of a 403
security = HTTPBearer(auto_error=False)

logger = get_logger(__name__)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthUser:
    """
    FastAPI dependency to extract and validate the caller from a Bearer token

    Args:
        credentials: HTTP Bearer token credentials from Authorization header

    Returns:
        AuthUser decoded from a valid token

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return jwt_utils.extract_user(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(*roles: Role):
    """
    Build a dependency that only lets callers with one of ``roles`` through.

    Returns:
        Dependency resolving to the AuthUser

    Raises:
        HTTPException: 403 if the caller's role is not allowed
    """

    async def _require_roles(
        current_user: AuthUser = Depends(get_current_user),
    ) -> AuthUser:
        if not current_user.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden - insufficient permissions",
            )
        return current_user

    return _require_roles


def require_admin_key(
    x_admin_key: str = Header(..., description="Admin API key for operational endpoints"),
) -> None:
    """Check the X-Admin-Key header used by schedulers and operators."""
    expected_key = config.get("admin_api_key")

    if not expected_key or x_admin_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin API key"
        )
