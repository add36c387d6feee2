"""
Tests for per-season stat rows and latest-row bookkeeping.
"""

import pytest
from sqlalchemy import select
from recruiting.database.models import BattingStat, RegistrationStatus, User, UserRole
from recruiting.services import stats_service


async def _create_player(session, first="Sam", last="Slugger"):
    player = User(
        first_name=first,
        last_name=last,
        email=f"{first}.{last}@example.com".lower(),
        role=UserRole.PLAYER.value,
        registration_status=RegistrationStatus.APPROVED.value,
    )
    session.add(player)
    await session.flush()
    return player


async def _latest_seasons(session, player_id):
    result = await session.execute(
        select(BattingStat.season_year).where(
            BattingStat.player_id == player_id, BattingStat.is_latest.is_(True)
        )
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_newest_season_is_latest_regardless_of_insert_order(db_session):
    player = await _create_player(db_session)
    await stats_service.record_season_stats(db_session, player.id, "batting", "2024-25", {"hits": 50})
    await stats_service.record_season_stats(db_session, player.id, "batting", "2022-23", {"hits": 30})

    assert await _latest_seasons(db_session, player.id) == ["2024-25"]


@pytest.mark.asyncio
async def test_record_season_stats_upserts_one_row_per_season(db_session):
    player = await _create_player(db_session)
    first = await stats_service.record_season_stats(
        db_session, player.id, "batting", "2024", {"hits": 10, "home_runs": 1}
    )
    second = await stats_service.record_season_stats(
        db_session, player.id, "batting", "2024", {"hits": 12, "not_a_column": 99}
    )

    assert second["id"] == first["id"]
    assert second["hits"] == 12
    assert second["home_runs"] == 1
    assert "not_a_column" not in second

    rows = (await db_session.execute(select(BattingStat))).scalars().all()
    assert len(rows) == 1
    assert rows[0].season_start == "2024"


@pytest.mark.asyncio
async def test_record_season_stats_rejects_bad_input(db_session):
    player = await _create_player(db_session)
    with pytest.raises(ValueError, match="Unknown stat category"):
        await stats_service.record_season_stats(db_session, player.id, "bowling", "2024", {})
    with pytest.raises(ValueError, match="Season year is required"):
        await stats_service.record_season_stats(db_session, player.id, "batting", "  ", {})


@pytest.mark.asyncio
async def test_load_stats_for_players_orders_latest_first_and_filters_season(db_session):
    player = await _create_player(db_session)
    other = await _create_player(db_session, "Other", "Guy")
    for season in ("2022", "2024-25", "2023"):
        await stats_service.record_season_stats(db_session, player.id, "batting", season, {"hits": 1})
    await stats_service.record_season_stats(db_session, player.id, "fielding", "2024", {"errors": 2})

    stats = await stats_service.load_stats_for_players(db_session, [player.id, other.id])

    assert [row["season_year"] for row in stats[player.id]["batting_stats"]] == ["2024-25", "2023", "2022"]
    assert stats[player.id]["fielding_stats"][0]["errors"] == 2
    assert stats[player.id]["pitching_stats"] == []
    assert stats[other.id] == {"batting_stats": [], "pitching_stats": [], "fielding_stats": []}

    narrowed = await stats_service.load_stats_for_players(db_session, [player.id], "2023-24")
    assert [row["season_year"] for row in narrowed[player.id]["batting_stats"]] == ["2023"]

    everything = await stats_service.load_stats_for_players(db_session, [player.id], "all")
    assert len(everything[player.id]["batting_stats"]) == 3


@pytest.mark.asyncio
async def test_load_stats_for_no_players(db_session):
    assert await stats_service.load_stats_for_players(db_session, []) == {}
