"""Player listing, leaderboard and profile route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.services import player_search_service, player_service
from recruiting.services.stat_filters import get_available_metrics
from recruiting.api.auth_dependencies import get_base_url, get_current_user, require_recruiter

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players/uncommitted")
async def list_uncommitted_players(
    request: Request,
    user: dict = Depends(require_recruiter),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Uncommitted-player board.

    Query params: page, limit, commitmentStatus, seasonYear, name, position,
    statsType and ``<metric>_min`` / ``<metric>_max`` bounds.
    """
    try:
        return await player_search_service.get_uncommitted_players(
            session, request.query_params, get_base_url(request), viewer_id=user["id"]
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error listing uncommitted players: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error listing uncommitted players")


@router.get("/api/players/metrics")
async def list_metrics():
    """Metric picker options per stat category."""
    return {"metrics": get_available_metrics()}


@router.get("/api/players/top")
async def top_players(
    request: Request,
    category: str = Query("batting"),
    metric: str = Query("batting_average"),
    position: str = Query("all"),
    limit: int = Query(10, ge=1, le=100),
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Leaderboard by one metric of each player's latest season."""
    try:
        return await player_search_service.get_top_players_by_metric(
            session, user["id"], category, metric, position, limit, get_base_url(request)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading top players: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error loading top players")


@router.get("/api/players/statistics")
async def statistics_search(
    request: Request,
    search: Optional[str] = None,
    category: str = Query("batting"),
    metric: str = Query("batting_average"),
    position: str = Query("all"),
    team_id: Optional[int] = Query(None, alias="teamId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Ranked statistics search with name, position and team filters."""
    try:
        return await player_search_service.search_players_for_statistics(
            session,
            user["id"],
            search=search,
            category=category,
            metric=metric,
            position=position,
            team_id=team_id,
            page=page,
            limit=limit,
            base_url=get_base_url(request),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error searching player statistics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error searching player statistics")


@router.get("/api/players/{player_id}")
async def get_player(
    player_id: int,
    request: Request,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Full player profile."""
    try:
        player = await player_service.get_player_by_id(session, player_id, get_base_url(request))
    except Exception as e:
        logger.error(f"Error loading player {player_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error loading player")
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


@router.get("/api/players/{player_id}/stats")
async def get_player_stats(
    player_id: int,
    request: Request,
    season: Optional[str] = None,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """A player's batting, fielding and pitching lines, optionally for one season."""
    try:
        stats = await player_service.get_player_stats(
            session, player_id, season, get_base_url(request)
        )
    except Exception as e:
        logger.error(f"Error loading stats for player {player_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error loading player stats")
    if stats is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return stats
