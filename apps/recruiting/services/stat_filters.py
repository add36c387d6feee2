"""
Stat filter query builder.

Turns request query parameters (``<metric>_min`` / ``<metric>_max``,
``seasonYear``, ``name``, ``sortBy``/``sortOrder``) into SQLAlchemy
predicates and ordering against the per-season stat tables.

Only metric names present in ``METRICS`` ever reach SQL. Bounds apply to the
player's latest season row, or to the row of the requested season when a
season year is given; min and max on a metric always hit the same row.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Type

from sqlalchemy import Select, and_, exists, or_
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from recruiting.database.models import STAT_MODELS, StatCategory, User


@dataclass(frozen=True)
class MetricSpec:
    """One sortable/filterable stat column."""

    name: str
    value_type: Type  # float or int
    label: Optional[str] = None  # shown in the metric picker when set
    lower_is_better: bool = False  # display hint only; filters stay literal
    filterable: bool = True


@dataclass(frozen=True)
class MetricBound:
    """Inclusive range on one metric. Either end may be None."""

    metric: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None


def _metrics(*specs: MetricSpec) -> Dict[str, MetricSpec]:
    return {spec.name: spec for spec in specs}


METRICS: Dict[str, Dict[str, MetricSpec]] = {
    StatCategory.BATTING.value: _metrics(
        MetricSpec("batting_average", float, "Batting AVG"),
        MetricSpec("on_base_percentage", float, "On Base %"),
        MetricSpec("slugging_percentage", float, "Slugging %"),
        MetricSpec("home_runs", int, "Home Runs"),
        MetricSpec("rbi", int, "RBI"),
        MetricSpec("hits", int, "Hits"),
        MetricSpec("runs", int, "Runs"),
        MetricSpec("doubles", int),
        MetricSpec("triples", int),
        MetricSpec("walks", int, "Walks"),
        MetricSpec("strikeouts", int),
        MetricSpec("stolen_bases", int, "Stolen Bases"),
    ),
    StatCategory.PITCHING.value: _metrics(
        MetricSpec("era", float, "ERA", lower_is_better=True),
        MetricSpec("wins", int, "Wins"),
        MetricSpec("losses", int),
        MetricSpec("strikeouts_pitched", int, "Strikeouts"),
        MetricSpec("innings_pitched", float, "Innings Pitched"),
        MetricSpec("walks_allowed", int),
        MetricSpec("hits_allowed", int),
        MetricSpec("saves", int, "Saves"),
        MetricSpec("complete_games", int, "Complete Games", filterable=False),
        MetricSpec("shutouts", int, "Shutouts", filterable=False),
    ),
    StatCategory.FIELDING.value: _metrics(
        MetricSpec("fielding_percentage", float, "Fielding %"),
        MetricSpec("errors", int, "Errors", lower_is_better=True),
        MetricSpec("putouts", int, "Putouts"),
        MetricSpec("assists", int, "Assists"),
        MetricSpec("double_plays", int, "Double Plays"),
    ),
}

DEFAULT_SORT_METRIC = {
    StatCategory.BATTING.value: "batting_average",
    StatCategory.PITCHING.value: "era",
    StatCategory.FIELDING.value: "fielding_percentage",
}

_SEASON_RANGE_RE = re.compile(r"^(\d{4})-\d{2}$")
_SEASON_YEAR_RE = re.compile(r"^\d{4}$")
_INT_PREFIX_RE = re.compile(r"^[+-]?\d+")


def escape_like(value: str) -> str:
    """Escape LIKE-special characters (%, _) so they match literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_category(category: Optional[str]) -> str:
    """Return a known category name, defaulting to batting."""
    if category and category.lower() in METRICS:
        return category.lower()
    return StatCategory.BATTING.value


def normalize_season_year(value: Optional[str]) -> Optional[str]:
    """
    Reduce a season label to its starting year.

    Examples:
        >>> normalize_season_year("2024")
        '2024'
        >>> normalize_season_year("2024-25")
        '2024'
        >>> normalize_season_year("Spring 2024")
        'Spring 2024'
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if _SEASON_YEAR_RE.match(text):
        return text
    match = _SEASON_RANGE_RE.match(text)
    if match:
        return match.group(1)
    return text


def parse_bound(raw, value_type: Type) -> Optional[float]:
    """
    Parse one bound value. Anything unusable means "no constraint".

    Integer metrics take the leading integer ("3.7" -> 3); float metrics
    reject NaN and infinities.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    if value_type is int:
        match = _INT_PREFIX_RE.match(text)
        return int(match.group(0)) if match else None

    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_metric_bounds(category: str, params: Mapping[str, str]) -> List[MetricBound]:
    """Collect ``<metric>_min`` / ``<metric>_max`` bounds for one category."""
    bounds = []
    for name, spec in METRICS[category].items():
        if not spec.filterable:
            continue
        minimum = parse_bound(params.get(f"{name}_min"), spec.value_type)
        maximum = parse_bound(params.get(f"{name}_max"), spec.value_type)
        if minimum is None and maximum is None:
            continue
        bounds.append(MetricBound(name, minimum, maximum))
    return bounds


def parse_all_metric_bounds(params: Mapping[str, str]) -> Dict[str, List[MetricBound]]:
    """Bounds for every category; categories without bounds are omitted."""
    result = {}
    for category in METRICS:
        bounds = parse_metric_bounds(category, params)
        if bounds:
            result[category] = bounds
    return result


def build_stat_condition(
    category: str,
    bounds: List[MetricBound],
    season_year: Optional[str] = None,
) -> Optional[ColumnElement]:
    """
    EXISTS predicate: the player has one stat row satisfying every bound.

    The row is the one for ``season_year`` when given (normalized), otherwise
    the player's latest row. Returns None when there is nothing to filter on.
    """
    if not bounds:
        return None

    model = STAT_MODELS[category]
    clauses = [model.player_id == User.id]

    season = normalize_season_year(season_year)
    if season and season.lower() != "all":
        clauses.append(model.season_start == season)
    else:
        clauses.append(model.is_latest.is_(True))

    for bound in bounds:
        column = getattr(model, bound.metric)
        if bound.minimum is not None:
            clauses.append(column >= bound.minimum)
        if bound.maximum is not None:
            clauses.append(column <= bound.maximum)

    return exists().where(and_(*clauses))


def build_season_condition(season_year: Optional[str]) -> Optional[ColumnElement]:
    """Player has a stat row of any category for the season ("all" = no filter)."""
    season = normalize_season_year(season_year)
    if not season or season.lower() == "all":
        return None
    return or_(
        *[
            exists().where(and_(model.player_id == User.id, model.season_start == season))
            for model in STAT_MODELS.values()
        ]
    )


def build_has_stats_condition(category: str) -> ColumnElement:
    """Player has a latest row in the category."""
    model = STAT_MODELS[category]
    return exists().where(and_(model.player_id == User.id, model.is_latest.is_(True)))


def build_name_condition(name: Optional[str]) -> Optional[ColumnElement]:
    """
    Case-insensitive substring match on the player's name.

    One token matches either first or last name. Two or more tokens match
    the first token against the first name AND the second against the last
    name; further tokens are ignored.
    """
    if not name:
        return None
    tokens = name.split()
    if not tokens:
        return None

    first_pattern = f"%{escape_like(tokens[0])}%"
    if len(tokens) == 1:
        return or_(
            User.first_name.ilike(first_pattern, escape="\\"),
            User.last_name.ilike(first_pattern, escape="\\"),
        )

    last_pattern = f"%{escape_like(tokens[1])}%"
    return and_(
        User.first_name.ilike(first_pattern, escape="\\"),
        User.last_name.ilike(last_pattern, escape="\\"),
    )


def build_position_condition(position: Optional[str]) -> Optional[ColumnElement]:
    """Case-insensitive position match; "all" or empty means no filter."""
    if not position or position.strip().lower() == "all":
        return None
    return User.position.ilike(escape_like(position.strip()), escape="\\")


def resolve_sort_metric(category: str, sort_by: Optional[str]) -> str:
    """Return ``sort_by`` if it is a metric of the category, else the category default."""
    if sort_by and sort_by in METRICS[category]:
        return sort_by
    return DEFAULT_SORT_METRIC[category]


def apply_stat_sort(
    query: Select,
    category: str,
    sort_by: Optional[str],
    sort_order: Optional[str] = "desc",
) -> Tuple[Select, ColumnElement]:
    """
    Order ``query`` by a metric of the player's latest row in ``category``.

    Players without a latest row sort last. Ties fall back to the user id so
    pagination is stable. Returns the query and the sorted column.
    """
    model = STAT_MODELS[category]
    latest = aliased(model)
    metric = resolve_sort_metric(category, sort_by)
    column = getattr(latest, metric)

    query = query.outerjoin(
        latest, and_(latest.player_id == User.id, latest.is_latest.is_(True))
    )
    ordered = column.asc() if (sort_order or "").lower() == "asc" else column.desc()
    return query.order_by(ordered.nulls_last(), User.id.asc()), column


def build_pagination(page: int, limit: int, total_count: int, returned: int) -> Dict:
    """Pagination block shared by every listing."""
    skip = (page - 1) * limit
    return {
        "currentPage": page,
        "totalPages": math.ceil(total_count / limit) if limit else 0,
        "totalCount": total_count,
        "limit": limit,
        "hasMore": (skip + returned) < total_count,
    }


def parse_page_params(page, limit, default_limit: int, max_limit: int = 100) -> Tuple[int, int]:
    """Coerce page/limit query values to positive ints."""
    page_number = parse_bound(page, int) or 1
    page_size = parse_bound(limit, int) or default_limit
    return max(int(page_number), 1), min(max(int(page_size), 1), max_limit)


def get_available_metrics() -> Dict[str, List[Dict]]:
    """Metric picker options per category."""
    return {
        category: [
            {
                "value": spec.name,
                "label": spec.label,
                "sortOrder": "asc" if spec.lower_is_better else "desc",
            }
            for spec in specs.values()
            if spec.label
        ]
        for category, specs in METRICS.items()
    }
