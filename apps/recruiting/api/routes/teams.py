"""Team route handlers: listings, roster, stats and team follows."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.services import follow_service, player_search_service, team_service
from recruiting.api.auth_dependencies import get_base_url, get_current_user
from recruiting.models.schemas import TeamFollowResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/teams")
async def list_teams(
    request: Request,
    search: Optional[str] = None,
    division: Optional[str] = None,
    region: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Active teams, alphabetically, with player counts."""
    try:
        return await team_service.list_teams(
            session,
            search=search,
            division=division,
            region=region,
            page=page,
            limit=limit,
            base_url=get_base_url(request),
        )
    except Exception as e:
        logger.error(f"Error listing teams: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error listing teams")


@router.get("/api/teams/search")
async def search_teams(
    request: Request,
    q: str = Query(""),
    limit: int = Query(10, ge=1, le=50),
    session: AsyncSession = Depends(get_db_session),
):
    """Team typeahead. Public so the sign-up form can pick a team."""
    try:
        teams = await team_service.search_teams(session, q, limit, get_base_url(request))
        return {"teams": teams}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error searching teams: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error searching teams")


@router.get("/api/teams/following")
async def followed_teams(
    request: Request,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Teams the current user follows."""
    teams = await follow_service.get_followed_teams(session, user["id"], get_base_url(request))
    return {"teams": teams}


@router.get("/api/teams/{team_id}")
async def get_team(
    team_id: int,
    request: Request,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """One team with its follow state."""
    team = await team_service.get_team(session, team_id, get_base_url(request))
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    team["isFollowing"] = await follow_service.is_following_team(session, user["id"], team_id)
    team["followersCount"] = await follow_service.get_team_followers_count(session, team_id)
    return team


@router.get("/api/teams/{team_id}/roster")
async def team_roster(
    team_id: int,
    request: Request,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Approved players of a team.

    Query params: page, limit, position, search, seasonYear, sortBy,
    sortOrder and ``<metric>_min`` / ``<metric>_max`` bounds.
    """
    try:
        roster = await player_search_service.get_team_roster(
            session, user["id"], team_id, request.query_params, get_base_url(request)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading roster for team {team_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error loading team roster")
    if roster is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return roster


@router.get("/api/teams/{team_id}/stats")
async def team_stats(
    team_id: int,
    request: Request,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Aggregated batting and pitching totals for a team."""
    try:
        return await team_service.get_team_stats(session, team_id, get_base_url(request))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error loading stats for team {team_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error loading team stats")


@router.get("/api/teams/{team_id}/filters")
async def team_filters(
    team_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Roster filter options (positions, bats/throws, seasons)."""
    return await team_service.get_team_filters(session, team_id)


@router.post("/api/teams/{team_id}/follow", response_model=TeamFollowResponse)
async def follow_team(
    team_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Follow a team."""
    try:
        result = await follow_service.follow_team(session, user["id"], team_id)
        return {"message": "Team followed successfully", **result}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error following team {team_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error following team")


@router.delete("/api/teams/{team_id}/follow", response_model=TeamFollowResponse)
async def unfollow_team(
    team_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Stop following a team."""
    try:
        result = await follow_service.unfollow_team(session, user["id"], team_id)
        return {"message": "Team unfollowed successfully", **result}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error unfollowing team {team_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error unfollowing team")
