"""Follow graph route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.services import follow_service
from recruiting.api.auth_dependencies import get_base_url, get_current_user
from recruiting.models.schemas import FollowRequest, FollowResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/follows", response_model=FollowResponse)
async def follow_user(
    payload: FollowRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Follow another user."""
    try:
        await follow_service.follow_user(session, user["id"], payload.user_id)
        counts = await follow_service.get_follow_counts(session, payload.user_id)
        return {"message": "User followed successfully", "isFollowing": True, **counts}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error following user {payload.user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error following user")


@router.delete("/api/follows/{user_id}", response_model=FollowResponse)
async def unfollow_user(
    user_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Unfollow a user."""
    try:
        await follow_service.unfollow_user(session, user["id"], user_id)
        counts = await follow_service.get_follow_counts(session, user_id)
        return {"message": "User unfollowed successfully", "isFollowing": False, **counts}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error unfollowing user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error unfollowing user")


@router.get("/api/follows/following")
async def list_following(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Users the current user follows."""
    return await follow_service.get_following(session, user["id"], page, limit, get_base_url(request))


@router.get("/api/follows/followers")
async def list_followers(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Users following the current user."""
    return await follow_service.get_followers(session, user["id"], page, limit, get_base_url(request))


@router.get("/api/follows/status/{user_id}")
async def follow_status(
    user_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Whether the current user follows ``user_id``, with that user's counts."""
    counts = await follow_service.get_follow_counts(session, user_id)
    return {
        "isFollowing": await follow_service.is_following(session, user["id"], user_id),
        **counts,
    }
