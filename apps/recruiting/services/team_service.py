"""
Team service: listings, lookups, aggregate stats and roster filter options.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from recruiting.database.models import (
    BattingStat,
    PitchingStat,
    RegistrationStatus,
    Team,
    User,
    UserRole,
)
from recruiting.services.stat_filters import escape_like, build_pagination
from recruiting.utils.datetime_utils import isoformat_or_none
from recruiting.utils.formatting import resolve_media_url
import logging

logger = logging.getLogger(__name__)


def _team_to_dict(team: Team, base_url: Optional[str]) -> Dict:
    return {
        "id": team.id,
        "name": team.name,
        "logo": resolve_media_url(team.logo, base_url),
        "location": team.location,
        "division": team.division,
        "conference": team.conference,
        "region": team.region,
        "coach_name": team.coach_name,
        "is_active": team.is_active,
        "created_at": isoformat_or_none(team.created_at),
    }


def _player_count_subquery():
    return (
        select(func.count(User.id))
        .where(
            User.team_id == Team.id,
            User.role == UserRole.PLAYER.value,
            User.is_active.is_(True),
        )
        .correlate(Team)
        .scalar_subquery()
    )


def _team_search_condition(search: str):
    pattern = f"%{escape_like(search)}%"
    return or_(
        Team.name.ilike(pattern, escape="\\"),
        Team.location.ilike(pattern, escape="\\"),
    )


async def list_teams(
    session: AsyncSession,
    search: Optional[str] = None,
    division: Optional[str] = None,
    region: Optional[str] = None,
    is_active: bool = True,
    page: int = 1,
    limit: int = 10,
    base_url: Optional[str] = None,
) -> Dict:
    """
    List teams alphabetically with their active player counts.

    Args:
        session: Database session
        search: Substring match on name or location
        division: Exact division ("all" = any)
        region: Exact region ("all" = any)
        is_active: Only teams with this active flag
        page: 1-based page
        limit: Page size
        base_url: Base URL used to resolve logo paths

    Returns:
        Dict with teams (each with playerCount) and pagination
    """
    base = select(Team).where(Team.is_active.is_(is_active))
    if search:
        base = base.where(_team_search_condition(search))
    if division and division != "all":
        base = base.where(Team.division == division)
    if region and region != "all":
        base = base.where(Team.region == region)

    count_q = select(func.count()).select_from(base.subquery())
    total_count = (await session.execute(count_q)).scalar() or 0

    offset = (page - 1) * limit
    result = await session.execute(
        base.add_columns(_player_count_subquery().label("player_count"))
        .order_by(Team.name.asc(), Team.id.asc())
        .offset(offset)
        .limit(limit)
    )
    teams = []
    for team, player_count in result.all():
        data = _team_to_dict(team, base_url)
        data["playerCount"] = player_count or 0
        teams.append(data)

    return {
        "teams": teams,
        "pagination": build_pagination(page, limit, total_count, len(teams)),
    }


async def search_teams(
    session: AsyncSession, query: str, limit: int = 10, base_url: Optional[str] = None
) -> List[Dict]:
    """
    Typeahead search over active teams.

    Raises:
        ValueError: If the query is empty
    """
    if not query or not query.strip():
        raise ValueError("Search query is required")

    result = await session.execute(
        select(Team)
        .where(Team.is_active.is_(True), _team_search_condition(query.strip()))
        .order_by(Team.name.asc(), Team.id.asc())
        .limit(limit)
    )
    teams = []
    for team in result.scalars().all():
        teams.append(
            {
                "id": team.id,
                "name": team.name,
                "location": team.location,
                "division": team.division,
                "logo": resolve_media_url(team.logo, base_url),
                "displayName": f"{team.name} - {team.location}" if team.location else team.name,
            }
        )
    return teams


async def get_team(
    session: AsyncSession, team_id: int, base_url: Optional[str] = None
) -> Optional[Dict]:
    """Get one team with its active player count, or None."""
    result = await session.execute(
        select(Team, _player_count_subquery().label("player_count")).where(Team.id == team_id)
    )
    row = result.first()
    if row is None:
        return None
    team, player_count = row
    data = _team_to_dict(team, base_url)
    data["playerCount"] = player_count or 0
    return data


async def get_or_create_team(session: AsyncSession, name: str, **fields) -> tuple:
    """
    Find a team by name (case-insensitive) or create it.

    Returns:
        (Team, created)
    """
    result = await session.execute(
        select(Team).where(func.lower(Team.name) == name.strip().lower()).limit(1)
    )
    team = result.scalar_one_or_none()
    if team is not None:
        return team, False

    team = Team(name=name.strip(), **{k: v for k, v in fields.items() if v})
    session.add(team)
    await session.flush()
    logger.info(f"Created team {team.name} (id={team.id})")
    return team, True


async def _team_players(session: AsyncSession, team_id: int) -> List[User]:
    result = await session.execute(
        select(User).where(
            User.team_id == team_id,
            User.role == UserRole.PLAYER.value,
            User.registration_status == RegistrationStatus.APPROVED.value,
            User.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def get_team_stats(
    session: AsyncSession, team_id: int, base_url: Optional[str] = None
) -> Dict:
    """
    Aggregate the latest batting and pitching rows of a team's players.

    Raises:
        ValueError: If the team does not exist or has no players
    """
    team = (await session.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
    if team is None:
        raise ValueError("Team not found")

    players = await _team_players(session, team_id)
    if not players:
        raise ValueError("No players found for this team")

    ids = [p.id for p in players]
    batting = {
        row.player_id: row
        for row in (
            await session.execute(
                select(BattingStat).where(BattingStat.player_id.in_(ids), BattingStat.is_latest.is_(True))
            )
        ).scalars().all()
    }
    pitching = {
        row.player_id: row
        for row in (
            await session.execute(
                select(PitchingStat).where(PitchingStat.player_id.in_(ids), PitchingStat.is_latest.is_(True))
            )
        ).scalars().all()
    }

    total_hits = total_at_bats = total_home_runs = total_rbi = 0
    total_wins = total_losses = 0
    top_performer = None
    highest_avg = 0.0

    for player in players:
        line = batting.get(player.id)
        if line is not None:
            total_hits += line.hits or 0
            total_at_bats += line.at_bats or 0
            total_home_runs += line.home_runs or 0
            total_rbi += line.rbi or 0
            avg = line.batting_average or 0
            if avg > highest_avg:
                highest_avg = avg
                top_performer = {
                    "name": f"{player.first_name} {player.last_name}",
                    "position": player.position or "N/A",
                    "avg": avg,
                    "hr": line.home_runs or 0,
                    "rbi": line.rbi or 0,
                }
        pitching_line = pitching.get(player.id)
        if pitching_line is not None:
            total_wins += pitching_line.wins or 0
            total_losses += pitching_line.losses or 0

    decisions = total_wins + total_losses
    return {
        "team": {
            "id": team.id,
            "name": team.name,
            "logo": resolve_media_url(team.logo, base_url),
        },
        "stats": {
            "totalPlayers": len(players),
            "teamBattingAverage": f"{total_hits / total_at_bats:.3f}" if total_at_bats else "0.000",
            "totalHomeRuns": total_home_runs,
            "totalRBI": total_rbi,
            "totalWins": total_wins,
            "totalLosses": total_losses,
            "winPercentage": f"{total_wins / decisions * 100:.1f}" if decisions else "0.0",
            "topPerformer": top_performer,
        },
    }


async def get_team_filters(session: AsyncSession, team_id: int) -> Dict:
    """Distinct positions, bats/throws and batting seasons present on a roster."""
    players = await _team_players(session, team_id)
    positions = sorted({p.position for p in players if p.position})
    bats_throws = sorted({p.bats_throws for p in players if p.bats_throws})

    classes: List[str] = []
    if players:
        result = await session.execute(
            select(BattingStat.season_year)
            .where(BattingStat.player_id.in_([p.id for p in players]))
            .distinct()
        )
        classes = sorted(set(result.scalars().all()), reverse=True)

    return {"positions": positions, "batThrows": bats_throws, "classes": classes}
