"""Response shaping helpers shared by every player/profile listing.

All functions are pure: they take plain dicts (as produced by the services)
and return new dicts without touching the database.
"""

from typing import Dict, List, Optional

from recruiting.utils.constants import POSITION_DETAIL_MAP, UNKNOWN_POSITION

# Document fields stored as {url, filename, uploadedAt, fileSize}
_DOCUMENT_FIELDS = ("coach_recommendation", "academic_info", "photo_id_document")


def resolve_media_url(url: Optional[str], base_url: Optional[str]) -> Optional[str]:
    """Prefix a stored relative media path with the server base URL.

    Absolute ``http``/``https`` URLs are returned untouched.

    Args:
        url: Stored path (e.g. "/uploads/a.png") or absolute URL
        base_url: Scheme + host of the current request (e.g. "https://api.example.com")

    Returns:
        Absolute URL, or None when there is nothing to resolve
    """
    if not url:
        return None
    if url.startswith("http") or not base_url:
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


def _resolve_document(document, base_url):
    if not isinstance(document, dict) or not document.get("url"):
        return document
    return {**document, "url": resolve_media_url(document["url"], base_url)}


def format_user_data(user: Optional[Dict], base_url: Optional[str]) -> Optional[Dict]:
    """Resolve every media URL on a user dict and drop the password hash."""
    if user is None:
        return None

    formatted = {k: v for k, v in user.items() if k != "password_hash"}
    formatted["profile_image"] = resolve_media_url(user.get("profile_image"), base_url)

    team = user.get("team")
    if isinstance(team, dict):
        formatted["team"] = {**team, "logo": resolve_media_url(team.get("logo"), base_url)}

    if user.get("videos"):
        formatted["videos"] = [
            {**video, "url": resolve_media_url(video.get("url"), base_url)}
            for video in user["videos"]
        ]

    for field in _DOCUMENT_FIELDS:
        if field in user:
            formatted[field] = _resolve_document(user[field], base_url)

    return formatted


def position_detail_name(position: Optional[str]) -> str:
    """Map a position code ("RHP", "1B", ...) to its display label."""
    if not position:
        return UNKNOWN_POSITION
    return POSITION_DETAIL_MAP.get(position.strip().upper(), UNKNOWN_POSITION)


def player_class(player: Dict) -> str:
    """Season label of the player's most recent stats (batting, then pitching, then fielding)."""
    for key in ("batting_stats", "pitching_stats", "fielding_stats"):
        stats: List[Dict] = player.get(key) or []
        if stats:
            return stats[0].get("season_year") or "N/A"
    return "N/A"


def format_player_listing(player: Dict, base_url: Optional[str]) -> Dict:
    """Shape a player dict for search/dashboard listings."""
    formatted = format_user_data(player, base_url)
    first = player.get("first_name") or ""
    last = player.get("last_name") or ""
    formatted["name"] = f"{first} {last}".strip()
    formatted["position"] = player.get("position") or "N/A"
    formatted["position_detail_name"] = position_detail_name(player.get("position"))
    formatted["class"] = player_class(player)
    return formatted
