"""
Follow service for the user -> user and user -> team follow graphs.

Handles follow/unfollow, follower and following listings, counts and
membership checks. Pair uniqueness is enforced by the database; a
concurrent duplicate insert surfaces as "Already following".
"""

from typing import Dict, List, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from recruiting.database.models import Follow, Team, TeamFollow, User
from recruiting.services.stat_filters import build_pagination
from recruiting.services.user_service import team_to_summary
from recruiting.utils.datetime_utils import isoformat_or_none
from recruiting.utils.formatting import resolve_media_url
import logging

logger = logging.getLogger(__name__)


def _follow_user_summary(user: User, followed_at, base_url: Optional[str]) -> Dict:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
        "profile_image": resolve_media_url(user.profile_image, base_url),
        "position": user.position,
        "followed_at": isoformat_or_none(followed_at),
    }


async def get_following_ids(session: AsyncSession, user_id: int) -> Set[int]:
    """IDs of every user ``user_id`` follows."""
    result = await session.execute(
        select(Follow.following_id).where(Follow.follower_id == user_id)
    )
    return set(result.scalars().all())


async def get_follow_counts(session: AsyncSession, user_id: int) -> Dict[str, int]:
    """
    Follower and following counts for a user.

    Returns:
        {"followersCount": int, "followingCount": int}
    """
    followers = await session.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    following = await session.execute(
        select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
    )
    return {
        "followersCount": followers.scalar() or 0,
        "followingCount": following.scalar() or 0,
    }


async def is_following(session: AsyncSession, follower_id: int, following_id: int) -> bool:
    """Check whether ``follower_id`` follows ``following_id``."""
    result = await session.execute(
        select(Follow.id).where(
            Follow.follower_id == follower_id, Follow.following_id == following_id
        )
    )
    return result.scalar_one_or_none() is not None


async def follow_user(session: AsyncSession, follower_id: int, following_id: int) -> Dict:
    """
    Follow another user.

    Args:
        session: Database session
        follower_id: User doing the following
        following_id: User to follow

    Returns:
        Dict with the follow edge

    Raises:
        ValueError: If following yourself, the target does not exist,
            or the edge already exists
    """
    if follower_id == following_id:
        raise ValueError("You cannot follow yourself")

    result = await session.execute(select(User.id).where(User.id == following_id))
    if result.scalar_one_or_none() is None:
        raise ValueError("User to follow not found")

    if await is_following(session, follower_id, following_id):
        raise ValueError("Already following this user")

    follow = Follow(follower_id=follower_id, following_id=following_id)
    session.add(follow)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ValueError("Already following this user")
    await session.refresh(follow)

    logger.info(f"User {follower_id} followed user {following_id}")
    return {
        "id": follow.id,
        "follower_id": follow.follower_id,
        "following_id": follow.following_id,
        "created_at": isoformat_or_none(follow.created_at),
    }


async def unfollow_user(session: AsyncSession, follower_id: int, following_id: int) -> None:
    """
    Remove a follow edge.

    Raises:
        ValueError: If ``follower_id`` does not follow ``following_id``
    """
    result = await session.execute(
        delete(Follow).where(
            Follow.follower_id == follower_id, Follow.following_id == following_id
        )
    )
    if result.rowcount == 0:
        raise ValueError("You are not following this user")
    await session.commit()


async def _list_edges(
    session: AsyncSession,
    match_column,
    other_column,
    user_id: int,
    page: int,
    limit: int,
    base_url: Optional[str],
) -> Dict:
    base = (
        select(User, Follow.created_at)
        .join(Follow, other_column == User.id)
        .where(match_column == user_id)
    )
    count_q = select(func.count()).select_from(base.subquery())
    total_count = (await session.execute(count_q)).scalar() or 0

    offset = (page - 1) * limit
    result = await session.execute(
        base.order_by(Follow.created_at.desc(), Follow.id.desc()).offset(offset).limit(limit)
    )
    items = [_follow_user_summary(user, created_at, base_url) for user, created_at in result.all()]
    return {"users": items, "pagination": build_pagination(page, limit, total_count, len(items))}


async def get_following(
    session: AsyncSession, user_id: int, page: int = 1, limit: int = 20, base_url: Optional[str] = None
) -> Dict:
    """Users that ``user_id`` follows, newest first."""
    return await _list_edges(
        session, Follow.follower_id, Follow.following_id, user_id, page, limit, base_url
    )


async def get_followers(
    session: AsyncSession, user_id: int, page: int = 1, limit: int = 20, base_url: Optional[str] = None
) -> Dict:
    """Users following ``user_id``, newest first."""
    return await _list_edges(
        session, Follow.following_id, Follow.follower_id, user_id, page, limit, base_url
    )


# ──────────────────────────────────────────────────────────────
# Team follows
# ──────────────────────────────────────────────────────────────


async def is_following_team(session: AsyncSession, user_id: int, team_id: int) -> bool:
    """Check whether the user follows the team."""
    result = await session.execute(
        select(TeamFollow.id).where(TeamFollow.follower_id == user_id, TeamFollow.team_id == team_id)
    )
    return result.scalar_one_or_none() is not None


async def get_team_followers_count(session: AsyncSession, team_id: int) -> int:
    """Number of users following the team."""
    result = await session.execute(
        select(func.count()).select_from(TeamFollow).where(TeamFollow.team_id == team_id)
    )
    return result.scalar() or 0


async def follow_team(session: AsyncSession, user_id: int, team_id: int) -> Dict:
    """
    Follow a team.

    Raises:
        ValueError: If the team does not exist, is inactive, or is already followed
    """
    result = await session.execute(select(Team).where(Team.id == team_id))
    team = result.scalar_one_or_none()
    if team is None or not team.is_active:
        raise ValueError("Team not found")

    if await is_following_team(session, user_id, team_id):
        raise ValueError("Already following this team")

    edge = TeamFollow(follower_id=user_id, team_id=team_id)
    session.add(edge)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ValueError("Already following this team")

    return {
        "team_id": team_id,
        "isFollowing": True,
        "followersCount": await get_team_followers_count(session, team_id),
    }


async def unfollow_team(session: AsyncSession, user_id: int, team_id: int) -> Dict:
    """
    Stop following a team.

    Raises:
        ValueError: If the user does not follow the team
    """
    result = await session.execute(
        delete(TeamFollow).where(TeamFollow.follower_id == user_id, TeamFollow.team_id == team_id)
    )
    if result.rowcount == 0:
        raise ValueError("You are not following this team")
    await session.commit()
    return {
        "team_id": team_id,
        "isFollowing": False,
        "followersCount": await get_team_followers_count(session, team_id),
    }


async def get_followed_teams(
    session: AsyncSession, user_id: int, base_url: Optional[str] = None
) -> List[Dict]:
    """Teams the user follows, newest follow first."""
    result = await session.execute(
        select(Team, TeamFollow.created_at)
        .join(TeamFollow, TeamFollow.team_id == Team.id)
        .where(TeamFollow.follower_id == user_id)
        .order_by(TeamFollow.created_at.desc(), TeamFollow.id.desc())
    )
    teams = []
    for team, followed_at in result.all():
        summary = team_to_summary(team)
        summary["logo"] = resolve_media_url(team.logo, base_url)
        summary["followed_at"] = isoformat_or_none(followed_at)
        teams.append(summary)
    return teams
