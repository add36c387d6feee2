"""
Saved search filters for coaches and scouts.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from recruiting.database.models import SavedFilter
from recruiting.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)


def _filter_to_dict(saved: SavedFilter) -> Dict:
    return {
        "id": saved.id,
        "name": saved.name,
        "query_params": saved.query_params or {},
        "hitting_stats": saved.hitting_stats or [],
        "pitching_stats": saved.pitching_stats or [],
        "created_at": isoformat_or_none(saved.created_at),
    }


async def save_filter(
    session: AsyncSession,
    user_id: int,
    name: Optional[str],
    query_params: Optional[Dict] = None,
    hitting_stats: Optional[List[str]] = None,
    pitching_stats: Optional[List[str]] = None,
) -> Dict:
    """
    Save a named filter for the user.

    Raises:
        ValueError: If the name is missing
    """
    if not name or not name.strip():
        raise ValueError("Filter name is required")

    saved = SavedFilter(
        user_id=user_id,
        name=name.strip(),
        query_params=query_params or {},
        hitting_stats=hitting_stats or [],
        pitching_stats=pitching_stats or [],
    )
    session.add(saved)
    await session.commit()
    await session.refresh(saved)
    return _filter_to_dict(saved)


async def get_filters(session: AsyncSession, user_id: int) -> List[Dict]:
    """The user's saved filters, newest first."""
    result = await session.execute(
        select(SavedFilter)
        .where(SavedFilter.user_id == user_id)
        .order_by(SavedFilter.created_at.desc(), SavedFilter.id.desc())
    )
    return [_filter_to_dict(f) for f in result.scalars().all()]


async def delete_filter(session: AsyncSession, user_id: int, filter_id: int) -> bool:
    """
    Delete one of the user's filters.

    Returns:
        False if the user owns no filter with this ID
    """
    result = await session.execute(
        delete(SavedFilter).where(SavedFilter.id == filter_id, SavedFilter.user_id == user_id)
    )
    await session.commit()
    return result.rowcount > 0
