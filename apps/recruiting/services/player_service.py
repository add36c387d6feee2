"""
Player profile loading.

Builds the full player dict (team, stat lists latest-first, videos) used by
every listing, in a fixed number of queries per page.
"""

from typing import Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from recruiting.database.models import PlayerVideo, Team, User, UserRole
from recruiting.services import stats_service
from recruiting.services.user_service import user_to_dict
from recruiting.utils.datetime_utils import isoformat_or_none
from recruiting.utils.formatting import format_user_data
import logging

logger = logging.getLogger(__name__)


def _video_to_dict(video: PlayerVideo) -> Dict:
    return {
        "id": video.id,
        "url": video.url,
        "title": video.title,
        "file_size": video.file_size,
        "duration": video.duration,
        "uploaded_at": isoformat_or_none(video.uploaded_at),
    }


async def serialize_players(
    session: AsyncSession,
    users: Sequence[User],
    season_year: Optional[str] = None,
) -> List[Dict]:
    """
    Expand player rows into full dicts, preserving input order.

    Args:
        session: Database session
        users: Player rows
        season_year: When set, stat lists only contain that season

    Returns:
        List of player dicts with team, batting/pitching/fielding stats and videos
    """
    if not users:
        return []

    ids = [u.id for u in users]
    team_ids = {u.team_id for u in users if u.team_id}

    teams = {}
    if team_ids:
        result = await session.execute(select(Team).where(Team.id.in_(team_ids)))
        teams = {t.id: t for t in result.scalars().all()}

    videos: Dict[int, List[Dict]] = {pid: [] for pid in ids}
    result = await session.execute(
        select(PlayerVideo)
        .where(PlayerVideo.player_id.in_(ids))
        .order_by(PlayerVideo.uploaded_at.desc(), PlayerVideo.id.desc())
    )
    for video in result.scalars().all():
        videos[video.player_id].append(_video_to_dict(video))

    stats = await stats_service.load_stats_for_players(session, ids, season_year)

    players = []
    for user in users:
        data = user_to_dict(user, teams.get(user.team_id))
        data.update(stats[user.id])
        data["videos"] = videos[user.id]
        players.append(data)
    return players


async def get_player_by_id(
    session: AsyncSession, player_id: int, base_url: Optional[str] = None
) -> Optional[Dict]:
    """
    Get one player's full profile.

    Returns:
        Formatted player dict or None if no player has this ID
    """
    result = await session.execute(
        select(User).where(User.id == player_id, User.role == UserRole.PLAYER.value)
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None
    players = await serialize_players(session, [user])
    return format_user_data(players[0], base_url)


async def get_player_stats(
    session: AsyncSession,
    player_id: int,
    season: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Optional[Dict]:
    """
    Get a player's identity card and stat lines, optionally for one season.

    Returns:
        {"player": {...}, "stats": {"batting": [...], "fielding": [...], "pitching": [...]}}
        or None if the player does not exist
    """
    result = await session.execute(
        select(User).where(User.id == player_id, User.role == UserRole.PLAYER.value)
    )
    user = result.scalar_one_or_none()
    if user is None:
        return None

    player = (await serialize_players(session, [user], season_year=season))[0]
    player = format_user_data(player, base_url)
    return {
        "player": {
            "id": player["id"],
            "first_name": player["first_name"],
            "last_name": player["last_name"],
            "full_name": f"{player['first_name'] or ''} {player['last_name'] or ''}".strip(),
            "email": player["email"],
            "team": player["team"],
            "jersey_number": player["jersey_number"],
            "position": player["position"],
            "height": player["height"],
            "weight": player["weight"],
            "bats_throws": player["bats_throws"],
            "hometown": player["hometown"],
            "high_school": player["high_school"],
            "previous_school": player["previous_school"],
            "profile_image": player["profile_image"],
        },
        "stats": {
            "batting": player["batting_stats"],
            "fielding": player["fielding_stats"],
            "pitching": player["pitching_stats"],
        },
    }
