"""
Per-season stat rows: upsert, latest-row bookkeeping and batch loading.

Every player has at most one row per season per category. After any write
the player's rows are re-ranked so that exactly one row carries
``is_latest`` (greatest season start year, ties broken by the most recent
insert). Listings return rows latest-first.
"""

import re
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.models import STAT_MODELS
from recruiting.services.stat_filters import normalize_season_year
import logging

logger = logging.getLogger(__name__)

_BASE_COLUMNS = {
    "id",
    "player_id",
    "season_year",
    "season_start",
    "is_latest",
    "created_at",
    "updated_at",
}
_YEAR_RE = re.compile(r"\d{4}")


def stat_value_columns(model) -> List[str]:
    """Names of the numeric stat columns on a stat model."""
    return [c.name for c in model.__table__.columns if c.name not in _BASE_COLUMNS]


def _season_rank(row) -> tuple:
    match = _YEAR_RE.search(row.season_start or row.season_year or "")
    return (int(match.group(0)) if match else -1, row.id or 0)


def stat_row_to_dict(row) -> Dict:
    """Convert a stat row to the dict shape used in listings."""
    data = {"id": row.id, "season_year": row.season_year}
    for name in stat_value_columns(type(row)):
        data[name] = getattr(row, name)
    return data


def _get_model(category: str):
    model = STAT_MODELS.get((category or "").lower())
    if model is None:
        raise ValueError(f"Unknown stat category: {category}")
    return model


async def refresh_latest_flag(session: AsyncSession, category: str, player_id: int) -> None:
    """Mark exactly one of the player's rows in ``category`` as latest."""
    model = _get_model(category)
    result = await session.execute(select(model).where(model.player_id == player_id))
    rows = list(result.scalars().all())
    if not rows:
        return

    latest = max(rows, key=_season_rank)
    await session.execute(
        update(model)
        .where(model.player_id == player_id, model.id != latest.id)
        .values(is_latest=False)
        .execution_options(synchronize_session="fetch")
    )
    await session.execute(
        update(model)
        .where(model.id == latest.id)
        .values(is_latest=True)
        .execution_options(synchronize_session="fetch")
    )


async def record_season_stats(
    session: AsyncSession,
    player_id: int,
    category: str,
    season_year: str,
    values: Dict,
) -> Dict:
    """
    Insert or update the player's row for one season.

    Args:
        session: Database session
        player_id: Player user ID
        category: batting, pitching or fielding
        season_year: Season label as shown to users ("2024" or "2024-25")
        values: Stat column -> value; unknown keys are ignored

    Returns:
        Dict with the stored row

    Raises:
        ValueError: If category or season year is invalid
    """
    model = _get_model(category)
    if not season_year or not str(season_year).strip():
        raise ValueError("Season year is required")
    season_year = str(season_year).strip()

    allowed = set(stat_value_columns(model))
    result = await session.execute(
        select(model).where(model.player_id == player_id, model.season_year == season_year)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = model(
            player_id=player_id,
            season_year=season_year,
            season_start=normalize_season_year(season_year),
            is_latest=False,
        )
        session.add(row)

    for key, value in values.items():
        if key in allowed:
            setattr(row, key, value)

    await session.flush()
    await refresh_latest_flag(session, category, player_id)
    await session.refresh(row)
    return stat_row_to_dict(row)


async def load_stats_for_players(
    session: AsyncSession,
    player_ids: Iterable[int],
    season_year: Optional[str] = None,
) -> Dict[int, Dict[str, List[Dict]]]:
    """
    Batch-load stat rows for many players.

    Returns:
        {player_id: {"batting_stats": [...], "pitching_stats": [...], "fielding_stats": [...]}}
        with each list ordered latest-first. When ``season_year`` is given
        (and not "all"), only that season's rows are included.
    """
    ids = list(player_ids)
    stats = {pid: {f"{c}_stats": [] for c in STAT_MODELS} for pid in ids}
    if not ids:
        return stats

    season = normalize_season_year(season_year)
    if season and season.lower() == "all":
        season = None

    for category, model in STAT_MODELS.items():
        query = select(model).where(model.player_id.in_(ids))
        if season:
            query = query.where(model.season_start == season)
        rows = (await session.execute(query)).scalars().all()
        for row in sorted(rows, key=_season_rank, reverse=True):
            stats[row.player_id][f"{category}_stats"].append(stat_row_to_dict(row))

    return stats
