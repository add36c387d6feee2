"""
Tests for response shaping helpers and datetime utilities.
"""

from datetime import datetime, timedelta

import pytz

from recruiting.utils.datetime_utils import (
    default_period_end,
    isoformat_or_none,
    parse_provider_timestamp,
)
from recruiting.utils.formatting import (
    format_player_listing,
    format_user_data,
    player_class,
    position_detail_name,
    resolve_media_url,
)

BASE = "https://api.example.com"


def test_resolve_media_url_prefixes_relative_paths():
    assert resolve_media_url("/uploads/a.png", BASE) == "https://api.example.com/uploads/a.png"
    assert resolve_media_url("uploads/a.png", BASE + "/") == "https://api.example.com/uploads/a.png"


def test_resolve_media_url_keeps_absolute_urls_and_empty_values():
    assert resolve_media_url("https://cdn.example.com/a.png", BASE) == "https://cdn.example.com/a.png"
    assert resolve_media_url("/uploads/a.png", None) == "/uploads/a.png"
    assert resolve_media_url(None, BASE) is None
    assert resolve_media_url("", BASE) is None


def test_format_user_data_resolves_every_media_field():
    user = {
        "id": 1,
        "password_hash": "secret",
        "profile_image": "/uploads/me.png",
        "team": {"id": 3, "name": "Wildcats", "logo": "/logos/w.png"},
        "videos": [{"id": 9, "url": "/videos/v.mp4"}],
        "coach_recommendation": {"url": "/docs/rec.pdf", "filename": "rec.pdf"},
        "academic_info": None,
    }
    formatted = format_user_data(user, BASE)

    assert "password_hash" not in formatted
    assert formatted["profile_image"] == f"{BASE}/uploads/me.png"
    assert formatted["team"]["logo"] == f"{BASE}/logos/w.png"
    assert formatted["videos"][0]["url"] == f"{BASE}/videos/v.mp4"
    assert formatted["coach_recommendation"] == {"url": f"{BASE}/docs/rec.pdf", "filename": "rec.pdf"}
    assert formatted["academic_info"] is None
    # Input is left untouched
    assert user["profile_image"] == "/uploads/me.png"


def test_format_user_data_none():
    assert format_user_data(None, BASE) is None


def test_position_detail_name():
    assert position_detail_name("RHP") == "Right-Handed Pitcher"
    assert position_detail_name("ss") == "Shortstop"
    assert position_detail_name("XYZ") == "Unknown Position"
    assert position_detail_name(None) == "Unknown Position"


def test_player_class_prefers_batting_then_pitching():
    assert player_class({"batting_stats": [{"season_year": "2024-25"}]}) == "2024-25"
    assert player_class({"batting_stats": [], "pitching_stats": [{"season_year": "2023"}]}) == "2023"
    assert player_class({}) == "N/A"


def test_format_player_listing_adds_display_fields():
    player = {
        "id": 7,
        "first_name": "Jake",
        "last_name": "Miller",
        "position": None,
        "profile_image": None,
        "fielding_stats": [{"season_year": "2022"}],
    }
    listing = format_player_listing(player, BASE)

    assert listing["name"] == "Jake Miller"
    assert listing["position"] == "N/A"
    assert listing["position_detail_name"] == "Unknown Position"
    assert listing["class"] == "2022"


# ──────────────────────────────────────────────────────────────
# Provider timestamps
# ──────────────────────────────────────────────────────────────


def test_parse_provider_timestamp_unix_seconds():
    assert parse_provider_timestamp(1735689600) == datetime(2025, 1, 1, tzinfo=pytz.UTC)
    assert parse_provider_timestamp("1735689600") == datetime(2025, 1, 1, tzinfo=pytz.UTC)


def test_parse_provider_timestamp_iso_strings():
    assert parse_provider_timestamp("2025-01-01T00:00:00Z") == datetime(2025, 1, 1, tzinfo=pytz.UTC)
    naive = parse_provider_timestamp("2025-01-01T00:00:00")
    assert naive.tzinfo is not None


def test_parse_provider_timestamp_garbage():
    assert parse_provider_timestamp(None) is None
    assert parse_provider_timestamp("") is None
    assert parse_provider_timestamp("not a date") is None
    assert parse_provider_timestamp(True) is None
    assert parse_provider_timestamp({"seconds": 1}) is None


def test_default_period_end_is_thirty_days_out():
    start = datetime(2025, 3, 1, tzinfo=pytz.UTC)
    assert default_period_end(start) == start + timedelta(days=30)


def test_isoformat_or_none():
    assert isoformat_or_none(None) is None
    assert isoformat_or_none(datetime(2025, 1, 1, tzinfo=pytz.UTC)) == "2025-01-01T00:00:00+00:00"
