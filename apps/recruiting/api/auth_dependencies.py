"""
Authentication dependencies for FastAPI routes.
"""

import os
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from recruiting.services import auth_service, user_service
from recruiting.database.db import get_db_session
from recruiting.database.models import UserRole

security = HTTPBearer()


async def get_current_user(
    session: AsyncSession = Depends(get_db_session),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        session: Database session
        credentials: HTTP Bearer token credentials

    Returns:
        User dictionary

    Raises:
        HTTPException: If token is invalid, user not found or deactivated
    """
    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.get("is_active") is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    return user


def require_roles(*roles: str):
    """
    Build a dependency that admits only the given roles.

    Super admins are always admitted.
    """
    allowed = {r.value if isinstance(r, UserRole) else r for r in roles}

    async def _dep(user: dict = Depends(get_current_user)) -> dict:
        role = user.get("role")
        if role != UserRole.SUPER_ADMIN.value and role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to access this resource",
            )
        return user

    return _dep


require_recruiter = require_roles(UserRole.COACH, UserRole.SCOUT, UserRole.JUCO_COACH)
require_admin = require_roles(UserRole.SUPER_ADMIN)


def get_base_url(request: Request) -> str:
    """
    Base URL for resolving stored media paths.

    MEDIA_BASE_URL overrides the scheme and host of the incoming request.
    """
    configured = os.getenv("MEDIA_BASE_URL")
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")
