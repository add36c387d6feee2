"""
Import players and their season stats from a stats export CSV.

One row per player-season. Identity columns (First, Last, Team, Season, Pos,
...) are followed by batting columns, pitching columns prefixed ``P_`` and
fielding columns prefixed ``F_``. Teams are created on first sight; players
are matched by first name, last name and team (case-insensitive).
"""

import csv
import io
import math
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from recruiting.database.models import (
    CommitmentStatus,
    RegistrationStatus,
    StatCategory,
    User,
    UserRole,
)
from recruiting.services import stats_service, team_service
from recruiting.utils.datetime_utils import utcnow
import logging

logger = logging.getLogger(__name__)

IDENTITY_COLUMNS = {
    "Pos": "position",
    "No": "jersey_number",
    "Yr": "player_class",
    "B/T": "bats_throws",
    "Ht": "height",
    "Wt": "weight",
    "Hometown": "hometown",
    "High School": "high_school",
}

# CSV header -> (stat column, type)
BATTING_COLUMNS = {
    "GP": ("games_played", int),
    "GS": ("games_started", int),
    "AB": ("at_bats", int),
    "R": ("runs", int),
    "H": ("hits", int),
    "2B": ("doubles", int),
    "3B": ("triples", int),
    "HR": ("home_runs", int),
    "RBI": ("rbi", int),
    "TB": ("total_bases", int),
    "BB": ("walks", int),
    "HBP": ("hit_by_pitch", int),
    "SO": ("strikeouts", int),
    "SB": ("stolen_bases", int),
    "CS": ("caught_stealing", int),
    "SF": ("sacrifice_flies", int),
    "SH": ("sacrifice_hits", int),
    "AVG": ("batting_average", float),
    "OBP": ("on_base_percentage", float),
    "SLG": ("slugging_percentage", float),
    "OPS": ("on_base_plus_slugging", float),
    "BB%": ("walk_percentage", float),
    "SO%": ("strikeout_percentage", float),
}

PITCHING_COLUMNS = {
    "P_W": ("wins", int),
    "P_L": ("losses", int),
    "P_ERA": ("era", float),
    "P_APP": ("appearances", int),
    "P_GS": ("games_started", int),
    "P_CG": ("complete_games", int),
    "P_SHO": ("shutouts", int),
    "P_SV": ("saves", int),
    "P_IP": ("innings_pitched", float),
    "P_H": ("hits_allowed", int),
    "P_R": ("runs_allowed", int),
    "P_ER": ("earned_runs", int),
    "P_BB": ("walks_allowed", int),
    "P_SO": ("strikeouts_pitched", int),
    "P_2B": ("doubles_allowed", int),
    "P_3B": ("triples_allowed", int),
    "P_HR": ("home_runs_allowed", int),
    "P_AB": ("at_bats_against", int),
    "P_B/AVG": ("batting_average_against", float),
    "BB/9": ("walks_per_nine", float),
    "K/9": ("strikeouts_per_nine", float),
    "HR/9": ("home_runs_per_nine", float),
}

FIELDING_COLUMNS = {
    "F_G": ("games", int),
    "F_GS": ("games_started", int),
    "F_TC": ("total_chances", int),
    "F_PO": ("putouts", int),
    "F_A": ("assists", int),
    "F_E": ("errors", int),
    "F_FPCT": ("fielding_percentage", float),
    "F_DP": ("double_plays", int),
    "F_SBA": ("stolen_bases_against", int),
    "F_CSB": ("runners_caught_stealing", int),
}

CATEGORY_COLUMNS = {
    StatCategory.BATTING.value: BATTING_COLUMNS,
    StatCategory.PITCHING.value: PITCHING_COLUMNS,
    StatCategory.FIELDING.value: FIELDING_COLUMNS,
}

_EMPTY_CELLS = {"", "-", "--", "n/a", "na"}


def parse_cell(raw: Optional[str], kind) -> Optional[float]:
    """
    Convert a CSV cell to a number.

    Blank and placeholder cells become None. Percent signs and thousands
    separators are dropped; integer columns accept "12.0".

    Raises:
        ValueError: If the cell is not a finite number
    """
    if raw is None:
        return None
    text = raw.strip().replace(",", "").rstrip("%")
    if text.lower() in _EMPTY_CELLS:
        return None
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Not a finite number: {raw!r}")
    return int(value) if kind is int else value


def _clean(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    text = raw.strip()
    return text or None


def extract_stats(row: Dict[str, str], columns: Dict) -> Dict:
    """Stat values present in a row for one category, keyed by stat column."""
    values = {}
    for header, (column, kind) in columns.items():
        if header not in row:
            continue
        try:
            value = parse_cell(row[header], kind)
        except ValueError:
            raise ValueError(f"Invalid value for {header}: {row[header]!r}")
        if value is not None:
            values[column] = value
    return values


async def _find_player(session: AsyncSession, first: str, last: str, team_id: int) -> Optional[User]:
    result = await session.execute(
        select(User)
        .where(
            func.lower(User.first_name) == first.lower(),
            func.lower(User.last_name) == last.lower(),
            User.team_id == team_id,
            User.role == UserRole.PLAYER.value,
        )
        .order_by(User.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def import_players_from_csv(session: AsyncSession, text: str) -> Dict:
    """
    Import a stats export.

    Args:
        session: Database session (committed on success)
        text: CSV content with a header row

    Returns:
        {"total", "created", "updated", "teams_created", "skipped", "errors"}
        where errors lists {"row": <1-based data row>, "error": <message>}

    Raises:
        ValueError: If the header row lacks First, Last or Team
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    headers = {h.strip() for h in (reader.fieldnames or []) if h}
    missing = [h for h in ("First", "Last", "Team") if h not in headers]
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(missing)}")

    results = {"total": 0, "created": 0, "updated": 0, "teams_created": 0, "skipped": 0, "errors": []}
    errors: List[Dict] = results["errors"]
    imported_at = utcnow()

    for index, raw_row in enumerate(reader, start=1):
        row = {(k or "").strip(): v for k, v in raw_row.items()}
        results["total"] += 1

        first = _clean(row.get("First"))
        last = _clean(row.get("Last"))
        team_name = _clean(row.get("Team"))
        if not first or not last or not team_name:
            results["skipped"] += 1
            errors.append({"row": index, "error": "Missing first name, last name or team"})
            continue

        try:
            stats = {category: extract_stats(row, columns) for category, columns in CATEGORY_COLUMNS.items()}
        except ValueError as e:
            results["skipped"] += 1
            errors.append({"row": index, "error": str(e)})
            continue

        team, team_created = await team_service.get_or_create_team(session, team_name)
        if team_created:
            results["teams_created"] += 1

        player = await _find_player(session, first, last, team.id)
        if player is None:
            player = User(
                first_name=first,
                last_name=last,
                role=UserRole.PLAYER.value,
                team_id=team.id,
                registration_status=RegistrationStatus.APPROVED.value,
                commitment_status=CommitmentStatus.UNCOMMITTED.value,
                is_active=True,
            )
            session.add(player)
            results["created"] += 1
        else:
            results["updated"] += 1

        for header, field in IDENTITY_COLUMNS.items():
            value = _clean(row.get(header))
            if value is not None:
                setattr(player, field, value)
        player.csv_imported = True
        player.last_csv_import = imported_at
        await session.flush()

        season = _clean(row.get("Season"))
        if not season:
            if any(stats.values()):
                errors.append({"row": index, "error": "Missing season; stats not imported"})
            continue
        for category, values in stats.items():
            if values:
                await stats_service.record_season_stats(session, player.id, category, season, values)

    await session.commit()
    logger.info(
        f"CSV import finished: {results['total']} rows, {results['created']} created, "
        f"{results['updated']} updated, {results['skipped']} skipped"
    )
    return results
