"""
Player search service.

Dashboards, the uncommitted-player board, metric leaderboards, the
statistics search page and team rosters. All listings share the stat
filter builder in ``stat_filters`` and the response shaping helpers in
``utils.formatting``.
"""

from typing import Dict, List, Mapping, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from recruiting.database.models import Team, User, UserRole, RegistrationStatus
from recruiting.services import follow_service, player_service
from recruiting.services.stat_filters import (
    METRICS,
    apply_stat_sort,
    build_has_stats_condition,
    build_name_condition,
    build_pagination,
    build_position_condition,
    build_season_condition,
    build_stat_condition,
    normalize_category,
    normalize_season_year,
    parse_all_metric_bounds,
    parse_bound,
    parse_metric_bounds,
    parse_page_params,
    resolve_sort_metric,
)
from recruiting.utils.constants import (
    COACH_DASHBOARD_LIMIT,
    MAX_PAGE_LIMIT,
    ROSTER_LIMIT,
    SCOUT_DASHBOARD_LIMIT,
    STATISTICS_SEARCH_LIMIT,
    SUGGESTION_LIMIT,
    TOP_PLAYERS_LIMIT,
    UNCOMMITTED_LIMIT,
)
from recruiting.utils.formatting import format_player_listing, format_user_data, resolve_media_url
import logging

logger = logging.getLogger(__name__)

# Roster sort fields exposed to clients -> ordering expressions.
# Jersey numbers are stored as text; shorter first keeps "9" ahead of "10".
_JERSEY_ORDER = (func.length(User.jersey_number), User.jersey_number)
ROSTER_SORT_FIELDS = {
    "firstName": (User.first_name,),
    "first_name": (User.first_name,),
    "lastName": (User.last_name,),
    "last_name": (User.last_name,),
    "position": (User.position,),
    "jerseyNumber": _JERSEY_ORDER,
    "jersey_number": _JERSEY_ORDER,
    "createdAt": (User.created_at,),
    "created_at": (User.created_at,),
}


class NoPlayersFoundError(ValueError):
    """Raised by the uncommitted-player board when nothing matches."""


def _approved_players():
    return select(User).where(
        User.role == UserRole.PLAYER.value,
        User.registration_status == RegistrationStatus.APPROVED.value,
        User.is_active.is_(True),
    )


def _apply(query, *conditions):
    for condition in conditions:
        if condition is not None:
            query = query.where(condition)
    return query


async def _count(session: AsyncSession, query) -> int:
    count_q = select(func.count()).select_from(query.order_by(None).subquery())
    return (await session.execute(count_q)).scalar() or 0


async def _listing(
    session: AsyncSession,
    users: List[User],
    base_url: Optional[str],
    following_ids: Optional[Set[int]] = None,
    season_year: Optional[str] = None,
) -> List[Dict]:
    players = await player_service.serialize_players(session, users, season_year=season_year)
    formatted = []
    for player in players:
        item = format_player_listing(player, base_url)
        if following_ids is not None:
            item["isFollowing"] = player["id"] in following_ids
        formatted.append(item)
    return formatted


# ──────────────────────────────────────────────────────────────
# Suggestions
# ──────────────────────────────────────────────────────────────


async def get_suggested_profiles(
    session: AsyncSession,
    viewer_id: int,
    exclude_ids: Optional[Set[int]] = None,
    limit: int = SUGGESTION_LIMIT,
    base_url: Optional[str] = None,
) -> List[Dict]:
    """
    Approved active players the viewer does not follow yet.

    Ordered by profile completeness, then newest account first.
    """
    excluded = set(exclude_ids or set()) | {viewer_id}
    query = (
        _approved_players()
        .where(User.id.notin_(excluded))
        .order_by(User.profile_completeness.desc(), User.created_at.desc(), User.id.desc())
        .limit(limit)
    )
    users = list((await session.execute(query)).scalars().all())
    return await _listing(session, users, base_url, following_ids=set())


async def get_top_players(
    session: AsyncSession,
    viewer_id: int,
    exclude_ids: Optional[Set[int]] = None,
    limit: int = TOP_PLAYERS_LIMIT,
    base_url: Optional[str] = None,
) -> List[Dict]:
    """Most complete profiles among approved players the viewer does not follow."""
    excluded = set(exclude_ids or set()) | {viewer_id}
    query = (
        _approved_players()
        .where(User.id.notin_(excluded))
        .order_by(User.profile_completeness.desc(), User.id.asc())
        .limit(limit)
    )
    users = list((await session.execute(query)).scalars().all())
    return await _listing(session, users, base_url, following_ids=set())


# ──────────────────────────────────────────────────────────────
# Dashboards
# ──────────────────────────────────────────────────────────────


async def get_dashboard(
    session: AsyncSession,
    viewer: Dict,
    params: Mapping[str, str],
    base_url: Optional[str] = None,
) -> Dict:
    """
    Coach or scout dashboard.

    The followed-players page is filtered by the bounds of the selected
    ``statsType`` (a ``seasonYear`` narrows those bounds to that season's
    row), by ``name`` and ``position``, and sorted by ``sortBy`` within the
    category. An empty page is a normal result.

    Args:
        session: Database session
        viewer: Current user dict (coach or scout)
        params: Request query parameters
        base_url: Base URL used to resolve media paths

    Returns:
        Dict with message, viewer profile with follow counts, players,
        pagination, suggestions and topPlayers
    """
    role = viewer.get("role")
    default_limit = SCOUT_DASHBOARD_LIMIT if role == UserRole.SCOUT.value else COACH_DASHBOARD_LIMIT
    page, limit = parse_page_params(params.get("page"), params.get("limit"), default_limit, MAX_PAGE_LIMIT)
    category = normalize_category(params.get("statsType"))
    viewer_id = viewer["id"]

    counts = await follow_service.get_follow_counts(session, viewer_id)
    following_ids = await follow_service.get_following_ids(session, viewer_id)

    players: List[Dict] = []
    total_count = 0
    if following_ids:
        query = select(User).where(
            User.id.in_(following_ids), User.role == UserRole.PLAYER.value
        )
        query = _apply(
            query,
            build_stat_condition(
                category, parse_metric_bounds(category, params), params.get("seasonYear")
            ),
            build_name_condition(params.get("name")),
            build_position_condition(params.get("position")),
        )
        total_count = await _count(session, query)

        query, _ = apply_stat_sort(
            query, category, params.get("sortBy"), params.get("sortOrder") or "desc"
        )
        query = query.offset((page - 1) * limit).limit(limit)
        users = list((await session.execute(query)).scalars().all())
        players = await _listing(session, users, base_url, following_ids=following_ids)

    suggestions = await get_suggested_profiles(
        session, viewer_id, following_ids, SUGGESTION_LIMIT, base_url
    )
    top_players = await get_top_players(
        session, viewer_id, following_ids, TOP_PLAYERS_LIMIT, base_url
    )

    profile = format_user_data(viewer, base_url)
    profile.update(counts)

    return {
        "message": "Dashboard data retrieved successfully",
        role or "viewer": profile,
        "players": players,
        "pagination": build_pagination(page, limit, total_count, len(players)),
        "suggestions": suggestions,
        "topPlayers": top_players,
    }


# ──────────────────────────────────────────────────────────────
# Uncommitted players
# ──────────────────────────────────────────────────────────────


async def get_uncommitted_players(
    session: AsyncSession,
    params: Mapping[str, str],
    base_url: Optional[str] = None,
    viewer_id: Optional[int] = None,
) -> Dict:
    """
    Uncommitted-player board.

    ``seasonYear`` (other than "all") keeps players with stats of any
    category in that season and narrows the returned stat lists to it.
    Metric bounds come from ``statsType`` when given, otherwise from every
    category.

    Raises:
        NoPlayersFoundError: When nothing matches
    """
    page, limit = parse_page_params(params.get("page"), params.get("limit"), UNCOMMITTED_LIMIT, MAX_PAGE_LIMIT)
    season_year = params.get("seasonYear")
    season = normalize_season_year(season_year)
    if season and season.lower() == "all":
        season = None
    name = params.get("name")

    query = select(User).where(
        User.role == UserRole.PLAYER.value,
        User.registration_status == RegistrationStatus.APPROVED.value,
    )
    commitment_status = params.get("commitmentStatus")
    if commitment_status:
        query = query.where(User.commitment_status == commitment_status)

    if params.get("statsType"):
        category = normalize_category(params.get("statsType"))
        bounds_by_category = {category: parse_metric_bounds(category, params)}
    else:
        bounds_by_category = parse_all_metric_bounds(params)

    query = _apply(
        query,
        build_season_condition(season),
        build_name_condition(name),
        build_position_condition(params.get("position")),
        *[
            build_stat_condition(category, bounds, season)
            for category, bounds in bounds_by_category.items()
        ],
    )

    total_count = await _count(session, query)
    if total_count == 0:
        if name:
            raise NoPlayersFoundError("No uncommitted players found with this name")
        if season:
            raise NoPlayersFoundError(f"No players found with stats for season year {season_year}")
        raise NoPlayersFoundError("No uncommitted players found")

    query = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    users = list((await session.execute(query)).scalars().all())
    following_ids = (
        await follow_service.get_following_ids(session, viewer_id) if viewer_id else None
    )
    players = await _listing(session, users, base_url, following_ids, season_year=season)

    return {
        "message": "Uncommitted players retrieved successfully",
        "players": players,
        "totalPlayers": total_count,
        "pagination": build_pagination(page, limit, total_count, len(players)),
    }


# ──────────────────────────────────────────────────────────────
# Leaderboards and statistics search
# ──────────────────────────────────────────────────────────────


def _ranking_order(category: str, metric: str) -> str:
    return "asc" if METRICS[category][metric].lower_is_better else "desc"


def _leaderboard_entry(player: Dict, category: str, metric: str, value) -> Dict:
    latest = (player.get(f"{category}_stats") or [{}])[0]
    entry = {
        "id": player["id"],
        "name": player["name"],
        "profile_image": player["profile_image"],
        "position": player["position"],
        "position_detail_name": player["position_detail_name"],
        "team": player["team"],
        "previous_school": player.get("previous_school") or "-",
        "new_school": (player.get("team") or {}).get("name") or "-",
        "gpa": player.get("gpa"),
        "region": (player.get("team") or {}).get("region") or "-",
        "last_update": player.get("updated_at"),
        "videos": player.get("videos") or [],
        "metricValue": value if value is not None else 0,
        "era": None,
        "record": None,
    }
    if category == "pitching":
        entry["era"] = latest.get("era") or 0
        entry["record"] = f"{latest.get('wins') or 0}-{latest.get('losses') or 0}"
    return entry


async def _ranked_page(
    session: AsyncSession,
    query,
    category: str,
    metric: str,
    offset: int,
    limit: int,
    viewer_id: Optional[int],
    base_url: Optional[str],
) -> List[Dict]:
    query, column = apply_stat_sort(query, category, metric, _ranking_order(category, metric))
    query = query.add_columns(column).offset(offset).limit(limit)
    rows = (await session.execute(query)).all()

    users = [row[0] for row in rows]
    values = {row[0].id: row[1] for row in rows}
    following_ids = (
        await follow_service.get_following_ids(session, viewer_id) if viewer_id else set()
    )
    players = await _listing(session, users, base_url, following_ids)

    entries = []
    for index, player in enumerate(players):
        entry = _leaderboard_entry(player, category, metric, values.get(player["id"]))
        entry["rank"] = offset + index + 1
        entry["isFollowing"] = player["isFollowing"]
        entries.append(entry)
    return entries


async def get_top_players_by_metric(
    session: AsyncSession,
    viewer_id: Optional[int],
    category: Optional[str] = "batting",
    metric: Optional[str] = "batting_average",
    position: Optional[str] = "all",
    limit=TOP_PLAYERS_LIMIT,
    base_url: Optional[str] = None,
) -> Dict:
    """
    Leaderboard of approved players by one metric of their latest row.

    ERA and errors rank ascending, every other metric descending. Only
    players with a latest row in the category are ranked.
    """
    category = normalize_category(category)
    metric = resolve_sort_metric(category, metric)
    _, limit = parse_page_params(1, limit, TOP_PLAYERS_LIMIT, MAX_PAGE_LIMIT)

    query = _apply(
        _approved_players(),
        build_has_stats_condition(category),
        build_position_condition(position),
    )
    players = await _ranked_page(session, query, category, metric, 0, limit, viewer_id, base_url)
    return {
        "message": "Top players retrieved successfully",
        "category": category,
        "metric": metric,
        "players": players,
        "totalPlayers": len(players),
    }


async def search_players_for_statistics(
    session: AsyncSession,
    viewer_id: Optional[int],
    search: Optional[str] = None,
    category: Optional[str] = "batting",
    metric: Optional[str] = "batting_average",
    position: Optional[str] = "all",
    team_id=None,
    page=1,
    limit=STATISTICS_SEARCH_LIMIT,
    base_url: Optional[str] = None,
) -> Dict:
    """Paginated, ranked statistics search with name, position and team filters."""
    category = normalize_category(category)
    metric = resolve_sort_metric(category, metric)
    page, limit = parse_page_params(page, limit, STATISTICS_SEARCH_LIMIT, MAX_PAGE_LIMIT)
    team = parse_bound(team_id, int)

    query = _apply(
        _approved_players(),
        build_has_stats_condition(category),
        build_name_condition(search),
        build_position_condition(position),
        User.team_id == team if team else None,
    )
    total_count = await _count(session, query)
    offset = (page - 1) * limit
    players = await _ranked_page(session, query, category, metric, offset, limit, viewer_id, base_url)
    return {
        "message": "Players retrieved successfully",
        "category": category,
        "metric": metric,
        "players": players,
        "pagination": build_pagination(page, limit, total_count, len(players)),
    }


# ──────────────────────────────────────────────────────────────
# Team roster
# ──────────────────────────────────────────────────────────────


async def get_team_roster(
    session: AsyncSession,
    viewer_id: Optional[int],
    team_id: int,
    params: Mapping[str, str],
    base_url: Optional[str] = None,
) -> Optional[Dict]:
    """
    Approved active players of a team.

    Supports ``position``, ``search``, ``seasonYear`` (any category), metric
    bounds of every category and ``sortBy``/``sortOrder`` on profile fields.

    Returns:
        Roster dict, or None when the team does not exist
    """
    team = (await session.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
    if team is None:
        return None

    page, limit = parse_page_params(params.get("page"), params.get("limit"), ROSTER_LIMIT, MAX_PAGE_LIMIT)
    season = normalize_season_year(params.get("seasonYear"))
    if season and season.lower() == "all":
        season = None

    query = _approved_players().where(User.team_id == team_id)
    query = _apply(
        query,
        build_position_condition(params.get("position")),
        build_name_condition(params.get("search")),
        build_season_condition(season),
        *[
            build_stat_condition(category, bounds, season)
            for category, bounds in parse_all_metric_bounds(params).items()
        ],
    )
    total_count = await _count(session, query)

    sort_columns = ROSTER_SORT_FIELDS.get(params.get("sortBy") or "firstName", (User.first_name,))
    descending = (params.get("sortOrder") or "asc").lower() == "desc"
    ordered = [column.desc() if descending else column.asc() for column in sort_columns]
    query = query.order_by(*ordered, User.id.asc()).offset((page - 1) * limit).limit(limit)
    users = list((await session.execute(query)).scalars().all())

    following_ids = (
        await follow_service.get_following_ids(session, viewer_id) if viewer_id else set()
    )
    players = await _listing(session, users, base_url, following_ids, season_year=season)

    team_info = {
        "id": team.id,
        "name": team.name,
        "logo": resolve_media_url(team.logo, base_url),
        "location": team.location,
        "division": team.division,
        "conference": team.conference,
        "region": team.region,
    }
    return {
        "message": "Team roster retrieved successfully",
        "team": team_info,
        "players": players,
        "pagination": build_pagination(page, limit, total_count, len(players)),
    }
