"""
Tests for saved search filters.
"""

import pytest
from recruiting.database.models import User, UserRole
from recruiting.services import saved_filter_service


async def _create_coach(session, email="coach@example.com"):
    coach = User(first_name="Pat", last_name="Coach", email=email, role=UserRole.COACH.value)
    session.add(coach)
    await session.flush()
    return coach


@pytest.mark.asyncio
async def test_save_and_list_filters(db_session):
    coach = await _create_coach(db_session)
    await db_session.commit()

    saved = await saved_filter_service.save_filter(
        db_session,
        coach.id,
        "  Power bats ",
        query_params={"home_runs_min": "10"},
        hitting_stats=["home_runs", "rbi"],
    )

    assert saved["name"] == "Power bats"
    assert saved["query_params"] == {"home_runs_min": "10"}
    assert saved["hitting_stats"] == ["home_runs", "rbi"]
    assert saved["pitching_stats"] == []

    filters = await saved_filter_service.get_filters(db_session, coach.id)
    assert [f["id"] for f in filters] == [saved["id"]]


@pytest.mark.asyncio
async def test_save_filter_requires_name(db_session):
    coach = await _create_coach(db_session)
    await db_session.commit()

    with pytest.raises(ValueError, match="Filter name is required"):
        await saved_filter_service.save_filter(db_session, coach.id, "   ")


@pytest.mark.asyncio
async def test_delete_filter_only_for_owner(db_session):
    owner = await _create_coach(db_session)
    stranger = await _create_coach(db_session, "other@example.com")
    await db_session.commit()
    saved = await saved_filter_service.save_filter(db_session, owner.id, "Arms")

    assert await saved_filter_service.delete_filter(db_session, stranger.id, saved["id"]) is False
    assert await saved_filter_service.delete_filter(db_session, owner.id, saved["id"]) is True
    assert await saved_filter_service.delete_filter(db_session, owner.id, saved["id"]) is False
    assert await saved_filter_service.get_filters(db_session, owner.id) == []
