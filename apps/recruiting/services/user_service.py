"""
User service layer for account lookups and profile serialization.
"""

from typing import Optional, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from recruiting.database.models import User, Team
from recruiting.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)

# Columns never exposed through the API
_PRIVATE_FIELDS = {"password_hash"}

_DATETIME_FIELDS = {"created_at", "updated_at", "last_csv_import", "subscription_end_date"}


def user_to_dict(user: User, team: Optional[Team] = None) -> Dict:
    """
    Serialize a User row.

    Args:
        user: User model instance
        team: Optional team row to embed under "team"

    Returns:
        Dict of every public column, plus "team" when a team is given
    """
    data = {}
    for column in User.__table__.columns:
        if column.name in _PRIVATE_FIELDS:
            continue
        value = getattr(user, column.name)
        data[column.name] = isoformat_or_none(value) if column.name in _DATETIME_FIELDS else value
    data["team"] = team_to_summary(team) if team is not None else None
    return data


def team_to_summary(team: Team) -> Dict:
    """Compact team dict embedded in user and player payloads."""
    return {
        "id": team.id,
        "name": team.name,
        "logo": team.logo,
        "location": team.location,
        "division": team.division,
        "conference": team.conference,
        "region": team.region,
    }


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get a user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dict (with embedded team) or None if not found
    """
    result = await session.execute(
        select(User, Team).outerjoin(Team, Team.id == User.team_id).where(User.id == user_id)
    )
    row = result.first()
    if row is None:
        return None
    user, team = row
    return user_to_dict(user, team)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Get a user row by email (case-insensitive)."""
    if not email:
        return None
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()
