"""Profile management route handlers for players, coaches and scouts."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.database.models import UserRole
from recruiting.services import profile_service
from recruiting.api.auth_dependencies import get_base_url, require_roles
from recruiting.models.schemas import (
    AwardRequest,
    PlayerProfileUpdate,
    RecruiterProfileUpdate,
    StrengthRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()

require_player = require_roles(UserRole.PLAYER)
require_coach = require_roles(UserRole.COACH, UserRole.JUCO_COACH)
require_scout = require_roles(UserRole.SCOUT)


async def _run(action: str, call):
    """Await a profile service call; ValueError -> 400, None -> 404, anything else -> 500."""
    try:
        result = await call
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error {action}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error {action}")
    if result is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return result


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------


@router.get("/api/player/profile")
async def get_player_profile(
    request: Request,
    user: dict = Depends(require_player),
    session: AsyncSession = Depends(get_db_session),
):
    """The signed-in player's profile with its completion breakdown."""
    player = await _run(
        "loading player profile",
        profile_service.get_player_profile(session, user["id"], get_base_url(request)),
    )
    return {"message": "Player profile retrieved successfully", "player": player}


@router.put("/api/player/profile")
async def update_player_profile(
    payload: PlayerProfileUpdate,
    request: Request,
    user: dict = Depends(require_player),
    session: AsyncSession = Depends(get_db_session),
):
    """Update profile fields sent in the body; omitted fields keep their values."""
    player = await _run(
        "updating player profile",
        profile_service.update_player_profile(
            session, user["id"], payload.model_dump(exclude_unset=True), get_base_url(request)
        ),
    )
    return {"message": "Profile updated successfully", "player": player}


@router.post("/api/player/profile/awards")
async def add_award(
    payload: AwardRequest,
    request: Request,
    user: dict = Depends(require_player),
    session: AsyncSession = Depends(get_db_session),
):
    player = await _run(
        "adding award",
        profile_service.add_award(session, user["id"], payload.award, get_base_url(request)),
    )
    return {"message": "Award added successfully", "player": player}


@router.delete("/api/player/profile/awards")
async def remove_award(
    payload: AwardRequest,
    request: Request,
    user: dict = Depends(require_player),
    session: AsyncSession = Depends(get_db_session),
):
    player = await _run(
        "removing award",
        profile_service.remove_award(session, user["id"], payload.award, get_base_url(request)),
    )
    return {"message": "Award removed successfully", "player": player}


@router.post("/api/player/profile/strengths")
async def add_strength(
    payload: StrengthRequest,
    request: Request,
    user: dict = Depends(require_player),
    session: AsyncSession = Depends(get_db_session),
):
    player = await _run(
        "adding strength",
        profile_service.add_strength(session, user["id"], payload.strength, get_base_url(request)),
    )
    return {"message": "Strength added successfully", "player": player}


@router.delete("/api/player/profile/strengths")
async def remove_strength(
    payload: StrengthRequest,
    request: Request,
    user: dict = Depends(require_player),
    session: AsyncSession = Depends(get_db_session),
):
    player = await _run(
        "removing strength",
        profile_service.remove_strength(session, user["id"], payload.strength, get_base_url(request)),
    )
    return {"message": "Strength removed successfully", "player": player}


# ---------------------------------------------------------------------------
# Coach and scout
# ---------------------------------------------------------------------------


@router.get("/api/coach/profile")
async def get_coach_profile(
    request: Request,
    user: dict = Depends(require_coach),
    session: AsyncSession = Depends(get_db_session),
):
    coach = await _run(
        "loading coach profile",
        profile_service.get_recruiter_profile(
            session, user["id"], profile_service.COACH_ROLES, get_base_url(request)
        ),
    )
    return {"message": "Coach profile retrieved successfully", "coach": coach}


@router.put("/api/coach/profile")
async def update_coach_profile(
    payload: RecruiterProfileUpdate,
    request: Request,
    user: dict = Depends(require_coach),
    session: AsyncSession = Depends(get_db_session),
):
    """Update the signed-in coach's personal and school details."""
    coach = await _run(
        "updating coach profile",
        profile_service.update_recruiter_profile(
            session,
            user["id"],
            profile_service.COACH_ROLES,
            payload.model_dump(exclude_unset=True),
            get_base_url(request),
        ),
    )
    return {"message": "Profile updated successfully", "coach": coach}


@router.get("/api/scout/profile")
async def get_scout_profile(
    request: Request,
    user: dict = Depends(require_scout),
    session: AsyncSession = Depends(get_db_session),
):
    scout = await _run(
        "loading scout profile",
        profile_service.get_recruiter_profile(
            session, user["id"], {UserRole.SCOUT.value}, get_base_url(request)
        ),
    )
    return {"message": "Scout profile retrieved successfully", "scout": scout}


@router.put("/api/scout/profile")
async def update_scout_profile(
    payload: RecruiterProfileUpdate,
    request: Request,
    user: dict = Depends(require_scout),
    session: AsyncSession = Depends(get_db_session),
):
    """Update the signed-in scout's personal details, team and job title."""
    scout = await _run(
        "updating scout profile",
        profile_service.update_recruiter_profile(
            session,
            user["id"],
            {UserRole.SCOUT.value},
            payload.model_dump(exclude_unset=True),
            get_base_url(request),
        ),
    )
    return {"message": "Scout profile updated successfully", "scout": scout}
