"""Coach and scout dashboard route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.database.models import UserRole
from recruiting.services import player_search_service
from recruiting.api.auth_dependencies import get_base_url, require_roles

logger = logging.getLogger(__name__)
router = APIRouter()


async def _dashboard(request: Request, user: dict, session: AsyncSession):
    try:
        return await player_search_service.get_dashboard(
            session, user, request.query_params, get_base_url(request)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading {user.get('role')} dashboard: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error loading dashboard")


@router.get("/api/coach/dashboard")
async def coach_dashboard(
    request: Request,
    user: dict = Depends(require_roles(UserRole.COACH, UserRole.JUCO_COACH)),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Followed players for the signed-in coach.

    Query params: page, limit, statsType, seasonYear, name, position, sortBy,
    sortOrder and per-metric bounds (``<metric>_min`` / ``<metric>_max``).
    """
    return await _dashboard(request, user, session)


@router.get("/api/scout/dashboard")
async def scout_dashboard(
    request: Request,
    user: dict = Depends(require_roles(UserRole.SCOUT)),
    session: AsyncSession = Depends(get_db_session),
):
    """Followed players for the signed-in scout. Same filters as the coach dashboard."""
    return await _dashboard(request, user, session)
