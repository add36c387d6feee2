"""
Profile management for the signed-in user.

Players edit their own profile, awards and strengths; coaches and scouts
edit their account and professional details. Every function loads the row
for ``user_id`` and checks its role, so a caller can only ever change their
own profile.
"""

from typing import Dict, Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from recruiting.database.models import CommitmentStatus, PlayerVideo, Team, User, UserRole
from recruiting.services import auth_service, player_service
from recruiting.services.user_service import user_to_dict
from recruiting.utils.constants import (
    PROFILE_BASE_SCORE,
    PROFILE_WEIGHT_AWARDS,
    PROFILE_WEIGHT_COACH_RECOMMENDATION,
    PROFILE_WEIGHT_VIDEOS,
)
from recruiting.utils.formatting import format_user_data
import logging

logger = logging.getLogger(__name__)

# Player fields a player may set directly
PLAYER_EDITABLE_FIELDS = {
    "title",
    "description",
    "position",
    "hometown",
    "high_school",
    "previous_school",
    "instagram_url",
    "x_url",
    "gpa",
    "sat",
    "act",
    "transfer_status",
    "height",
    "weight",
    "commitment_status",
    "player_class",
}

COACH_EDITABLE_FIELDS = {
    "first_name",
    "last_name",
    "phone_number",
    "position",
    "school_type",
    "division",
    "conference",
    "state",
    "school",
    "organization",
    "job_title",
}

SCOUT_EDITABLE_FIELDS = {"first_name", "last_name", "phone_number", "job_title", "state"}

COACH_ROLES = {UserRole.COACH.value, UserRole.JUCO_COACH.value}


def calculate_profile_completeness(user: User, has_videos: bool) -> Dict:
    """
    Score a player profile.

    Registered players start at the base score; a highlight video, a coach
    recommendation and at least one award each add their weight.

    Returns:
        Dict with percentage, completedItems, missingItems and isComplete
    """
    checks = [
        ("highlight video", PROFILE_WEIGHT_VIDEOS, has_videos),
        (
            "coach recommendation",
            PROFILE_WEIGHT_COACH_RECOMMENDATION,
            bool((user.coach_recommendation or {}).get("url")),
        ),
        ("awards & achievements", PROFILE_WEIGHT_AWARDS, bool(user.awards)),
    ]
    score = PROFILE_BASE_SCORE
    completed, missing = [], []
    for label, weight, done in checks:
        if done:
            score += weight
            completed.append(label)
        else:
            missing.append(label)

    percentage = min(score, 100)
    return {
        "percentage": percentage,
        "completedItems": completed,
        "missingItems": missing,
        "isComplete": percentage == 100,
    }


async def _get_user_with_role(session: AsyncSession, user_id: int, roles: Iterable[str]) -> Optional[User]:
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or user.role not in set(roles):
        return None
    return user


async def _has_videos(session: AsyncSession, player_id: int) -> bool:
    result = await session.execute(
        select(func.count()).select_from(PlayerVideo).where(PlayerVideo.player_id == player_id)
    )
    return (result.scalar() or 0) > 0


async def _save_player(session: AsyncSession, player: User, base_url: Optional[str]) -> Dict:
    """Refresh the completeness score, commit and return the formatted profile."""
    completeness = calculate_profile_completeness(player, await _has_videos(session, player.id))
    player.profile_completeness = completeness["percentage"]
    await session.commit()

    players = await player_service.serialize_players(session, [player])
    data = format_user_data(players[0], base_url)
    data["profileCompletion"] = completeness
    return data


def _clean_list(values) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


# ────────────────────────────────────────────────────────────────────────────
# Players
# ────────────────────────────────────────────────────────────────────────────


async def get_player_profile(session: AsyncSession, player_id: int, base_url: Optional[str] = None) -> Optional[Dict]:
    """The player's own profile with its completion breakdown, or None if not a player."""
    player = await _get_user_with_role(session, player_id, {UserRole.PLAYER.value})
    if player is None:
        return None
    players = await player_service.serialize_players(session, [player])
    data = format_user_data(players[0], base_url)
    data["profileCompletion"] = calculate_profile_completeness(player, bool(players[0]["videos"]))
    return data


async def update_player_profile(
    session: AsyncSession, player_id: int, updates: Dict, base_url: Optional[str] = None
) -> Optional[Dict]:
    """
    Apply a partial update to a player's profile.

    Only keys present in ``updates`` change. Strengths and awards replace the
    stored lists (anything but a list clears them). A non-blank high school
    marks the player committed.

    Args:
        session: Database session
        player_id: ID of the signed-in player
        updates: snake_case fields from the request
        base_url: Base URL used to resolve media paths

    Returns:
        Formatted player dict, or None if the user is not a player

    Raises:
        ValueError: If commitment_status is not a known status
    """
    player = await _get_user_with_role(session, player_id, {UserRole.PLAYER.value})
    if player is None:
        return None

    commitment = updates.get("commitment_status")
    if commitment is not None and commitment not in {s.value for s in CommitmentStatus}:
        raise ValueError("Commitment status must be 'committed' or 'uncommitted'")

    for field, value in updates.items():
        if field in PLAYER_EDITABLE_FIELDS:
            setattr(player, field, value)
    if "strengths" in updates:
        player.strengths = _clean_list(updates["strengths"])
    if "awards" in updates:
        player.awards = _clean_list(updates["awards"])

    if player.high_school and player.high_school.strip():
        player.commitment_status = CommitmentStatus.COMMITTED.value

    data = await _save_player(session, player, base_url)
    logger.info(f"Player {player_id} updated profile fields: {sorted(updates)}")
    return data


async def _add_list_item(
    session: AsyncSession, player_id: int, field: str, label: str, value: Optional[str], base_url: Optional[str]
) -> Optional[Dict]:
    item = (value or "").strip()
    if not item:
        raise ValueError(f"{label} cannot be empty")

    player = await _get_user_with_role(session, player_id, {UserRole.PLAYER.value})
    if player is None:
        return None

    current = list(getattr(player, field) or [])
    if item in current:
        raise ValueError(f"{label} already exists")
    # Assign a new list so the JSON column is flagged dirty
    setattr(player, field, current + [item])
    return await _save_player(session, player, base_url)


async def _remove_list_item(
    session: AsyncSession, player_id: int, field: str, plural: str, value: Optional[str], base_url: Optional[str]
) -> Optional[Dict]:
    player = await _get_user_with_role(session, player_id, {UserRole.PLAYER.value})
    if player is None:
        return None

    current = list(getattr(player, field) or [])
    if not current:
        raise ValueError(f"No {plural} found")
    setattr(player, field, [v for v in current if v != value])
    return await _save_player(session, player, base_url)


async def add_award(session: AsyncSession, player_id: int, award: Optional[str], base_url: Optional[str] = None):
    """Append an award. Raises ValueError when blank or already listed."""
    return await _add_list_item(session, player_id, "awards", "Award", award, base_url)


async def remove_award(session: AsyncSession, player_id: int, award: Optional[str], base_url: Optional[str] = None):
    """Remove an award. Raises ValueError when the player has none."""
    return await _remove_list_item(session, player_id, "awards", "awards", award, base_url)


async def add_strength(session: AsyncSession, player_id: int, strength: Optional[str], base_url: Optional[str] = None):
    """Append a strength. Raises ValueError when blank or already listed."""
    return await _add_list_item(session, player_id, "strengths", "Strength", strength, base_url)


async def remove_strength(
    session: AsyncSession, player_id: int, strength: Optional[str], base_url: Optional[str] = None
):
    """Remove a strength. Raises ValueError when the player has none."""
    return await _remove_list_item(session, player_id, "strengths", "strengths", strength, base_url)


# ────────────────────────────────────────────────────────────────────────────
# Coaches and scouts
# ────────────────────────────────────────────────────────────────────────────


async def _recruiter_dict(session: AsyncSession, user: User, base_url: Optional[str]) -> Dict:
    team = None
    if user.team_id:
        team = (await session.execute(select(Team).where(Team.id == user.team_id))).scalar_one_or_none()
    return format_user_data(user_to_dict(user, team), base_url)


async def get_recruiter_profile(
    session: AsyncSession, user_id: int, roles: Iterable[str], base_url: Optional[str] = None
) -> Optional[Dict]:
    """Coach or scout profile, or None when the user does not hold one of ``roles``."""
    user = await _get_user_with_role(session, user_id, roles)
    if user is None:
        return None
    return await _recruiter_dict(session, user, base_url)


async def update_recruiter_profile(
    session: AsyncSession,
    user_id: int,
    roles: Iterable[str],
    updates: Dict,
    base_url: Optional[str] = None,
) -> Optional[Dict]:
    """
    Apply a partial update to a coach or scout profile.

    Coaches may change school and conference details; scouts may change
    their team. Both may change name, phone, job title, state, email and
    password. A blank password leaves the current one in place.

    Returns:
        Formatted user dict, or None when the user does not hold one of ``roles``

    Raises:
        ValueError: If the email is invalid or taken, the password is too
            short, or the team does not exist
    """
    user = await _get_user_with_role(session, user_id, roles)
    if user is None:
        return None

    is_scout = user.role == UserRole.SCOUT.value
    editable = SCOUT_EDITABLE_FIELDS if is_scout else COACH_EDITABLE_FIELDS

    # Validate everything before touching the row
    email = updates.get("email")
    if email is not None and email.strip().lower() != (user.email or ""):
        email = auth_service.normalize_email(email)
        taken = await session.execute(select(User.id).where(User.email == email, User.id != user.id))
        if taken.first() is not None:
            raise ValueError("Email already in use by another user")
    else:
        email = None

    password = updates.get("password")
    if password is not None and password.strip() and len(password) < 8:
        raise ValueError("Password must be at least 8 characters")

    team_id = updates.get("team_id")
    if is_scout and team_id is not None:
        team = (await session.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
        if team is None:
            raise ValueError("Team not found")

    if email:
        user.email = email
    if password is not None and password.strip():
        user.password_hash = auth_service.hash_password(password)
    if is_scout and "team_id" in updates:
        user.team_id = team_id
    for field, value in updates.items():
        if field in editable:
            setattr(user, field, value)

    await session.commit()
    logger.info(f"{user.role} {user_id} updated profile fields: {sorted(k for k in updates if k != 'password')}")
    return await _recruiter_dict(session, user, base_url)
