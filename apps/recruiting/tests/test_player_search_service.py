"""
Tests for player_search_service against an in-memory database.

Covers the ranked statistics search, leaderboards, the uncommitted-player
board (bounds, season and name filters, empty-result errors), dashboards
and team rosters.
"""

import pytest
from recruiting.database.models import Follow, Team, User, UserRole, RegistrationStatus
from recruiting.services import player_search_service, stats_service, user_service
from recruiting.services.player_search_service import NoPlayersFoundError


# ──────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────


async def _create_team(session, name="Wildcats", **fields):
    team = Team(name=name, **fields)
    session.add(team)
    await session.flush()
    return team


async def _create_player(session, first, last, team=None, **fields):
    fields.setdefault("registration_status", RegistrationStatus.APPROVED.value)
    player = User(
        first_name=first,
        last_name=last,
        email=f"{first}.{last}@example.com".lower(),
        role=UserRole.PLAYER.value,
        team_id=team.id if team else None,
        **fields,
    )
    session.add(player)
    await session.flush()
    return player


async def _create_coach(session, email="coach@example.com"):
    coach = User(
        first_name="Pat",
        last_name="Coach",
        email=email,
        role=UserRole.COACH.value,
        registration_status=RegistrationStatus.APPROVED.value,
    )
    session.add(coach)
    await session.flush()
    return coach


async def _batting(session, player, season, **values):
    return await stats_service.record_season_stats(session, player.id, "batting", season, values)


# ──────────────────────────────────────────────────────────────
# Statistics search and leaderboards
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_statistics_search_second_page_of_twenty_five(db_session):
    """25 ranked players, limit 10, page 2 -> ranks 11-20 of 3 pages."""
    players = []
    for i in range(25):
        player = await _create_player(db_session, f"Player{i:02d}", "Hitter")
        await _batting(db_session, player, "2024", batting_average=round(0.100 + i * 0.010, 3))
        players.append(player)
    await db_session.commit()

    result = await player_search_service.search_players_for_statistics(
        db_session, viewer_id=None, category="batting", metric="batting_average", page=2, limit=10
    )

    assert [p["rank"] for p in result["players"]] == list(range(11, 21))
    assert result["pagination"] == {
        "currentPage": 2,
        "totalPages": 3,
        "totalCount": 25,
        "limit": 10,
        "hasMore": True,
    }
    # Highest average first: rank 11 is the 11th best (index 14)
    assert result["players"][0]["id"] == players[14].id
    assert result["players"][0]["metricValue"] == pytest.approx(0.240)
    assert result["players"][-1]["id"] == players[5].id


@pytest.mark.asyncio
async def test_statistics_search_skips_players_without_category_stats(db_session):
    ranked = await _create_player(db_session, "Ranked", "Player")
    await _batting(db_session, ranked, "2024", batting_average=0.310)
    await _create_player(db_session, "No", "Stats")
    await db_session.commit()

    result = await player_search_service.search_players_for_statistics(db_session, viewer_id=None)

    assert [p["id"] for p in result["players"]] == [ranked.id]
    assert result["pagination"]["totalCount"] == 1


@pytest.mark.asyncio
async def test_statistics_search_ranks_by_latest_season(db_session):
    veteran = await _create_player(db_session, "Vet", "Eran")
    await _batting(db_session, veteran, "2022-23", batting_average=0.400)
    await _batting(db_session, veteran, "2023-24", batting_average=0.200)
    rookie = await _create_player(db_session, "Rook", "Ie")
    await _batting(db_session, rookie, "2024", batting_average=0.300)
    await db_session.commit()

    result = await player_search_service.search_players_for_statistics(db_session, viewer_id=None)

    assert [p["id"] for p in result["players"]] == [rookie.id, veteran.id]
    assert result["players"][1]["metricValue"] == pytest.approx(0.200)


@pytest.mark.asyncio
async def test_top_pitchers_rank_era_ascending(db_session):
    ace = await _create_player(db_session, "Ace", "Arm", position="RHP")
    await stats_service.record_season_stats(
        db_session, ace.id, "pitching", "2024", {"era": 1.50, "wins": 9, "losses": 1}
    )
    wild = await _create_player(db_session, "Wild", "Thing", position="LHP")
    await stats_service.record_season_stats(
        db_session, wild.id, "pitching", "2024", {"era": 6.25, "wins": 2, "losses": 7}
    )
    await db_session.commit()

    result = await player_search_service.get_top_players_by_metric(
        db_session, viewer_id=None, category="pitching", metric="era"
    )

    assert [p["id"] for p in result["players"]] == [ace.id, wild.id]
    assert result["players"][0]["rank"] == 1
    assert result["players"][0]["record"] == "9-1"
    assert result["players"][1]["era"] == pytest.approx(6.25)


@pytest.mark.asyncio
async def test_top_players_marks_followed_players(db_session):
    coach = await _create_coach(db_session)
    followed = await _create_player(db_session, "Fol", "Lowed")
    other = await _create_player(db_session, "Oth", "Er")
    for player in (followed, other):
        await _batting(db_session, player, "2024", batting_average=0.250)
    db_session.add(Follow(follower_id=coach.id, following_id=followed.id))
    await db_session.commit()

    result = await player_search_service.get_top_players_by_metric(db_session, viewer_id=coach.id)
    by_id = {p["id"]: p for p in result["players"]}

    assert by_id[followed.id]["isFollowing"] is True
    assert by_id[other.id]["isFollowing"] is False


# ──────────────────────────────────────────────────────────────
# Uncommitted players
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_uncommitted_bounds_use_latest_row_without_season(db_session):
    slumping = await _create_player(db_session, "Slump", "Ing")
    await _batting(db_session, slumping, "2023", batting_average=0.350)
    await _batting(db_session, slumping, "2024", batting_average=0.220)
    hot = await _create_player(db_session, "Hot", "Bat")
    await _batting(db_session, hot, "2024", batting_average=0.330)
    await db_session.commit()

    result = await player_search_service.get_uncommitted_players(
        db_session, {"statsType": "batting", "batting_average_min": "0.300"}
    )

    assert [p["id"] for p in result["players"]] == [hot.id]
    assert result["totalPlayers"] == 1


@pytest.mark.asyncio
async def test_uncommitted_bounds_use_season_row_when_season_given(db_session):
    slumping = await _create_player(db_session, "Slump", "Ing")
    await _batting(db_session, slumping, "2023-24", batting_average=0.350)
    await _batting(db_session, slumping, "2024-25", batting_average=0.220)
    await db_session.commit()

    result = await player_search_service.get_uncommitted_players(
        db_session,
        {"statsType": "batting", "batting_average_min": "0.300", "seasonYear": "2023-24"},
    )

    assert [p["id"] for p in result["players"]] == [slumping.id]
    # Returned stat lists are narrowed to the requested season
    seasons = [row["season_year"] for row in result["players"][0]["batting_stats"]]
    assert seasons == ["2023-24"]


@pytest.mark.asyncio
async def test_uncommitted_season_filter_matches_any_category(db_session):
    pitcher = await _create_player(db_session, "Only", "Pitches")
    await stats_service.record_season_stats(db_session, pitcher.id, "pitching", "2024", {"era": 3.1})
    old = await _create_player(db_session, "Old", "Timer")
    await _batting(db_session, old, "2021", batting_average=0.280)
    await db_session.commit()

    result = await player_search_service.get_uncommitted_players(db_session, {"seasonYear": "2024-25"})

    assert [p["id"] for p in result["players"]] == [pitcher.id]


@pytest.mark.asyncio
async def test_uncommitted_single_name_token_matches_first_or_last(db_session):
    john = await _create_player(db_session, "John", "Smith")
    mary = await _create_player(db_session, "Mary", "Jones")
    await _create_player(db_session, "Alex", "Brown")
    await db_session.commit()

    result = await player_search_service.get_uncommitted_players(db_session, {"name": "JO"})

    assert {p["id"] for p in result["players"]} == {john.id, mary.id}


@pytest.mark.asyncio
async def test_uncommitted_two_name_tokens_match_first_and_last(db_session):
    john = await _create_player(db_session, "John", "Smith")
    await _create_player(db_session, "Mary", "Jones")
    await _create_player(db_session, "Smith", "Johnson")
    await db_session.commit()

    result = await player_search_service.get_uncommitted_players(db_session, {"name": "jo sm"})

    assert [p["id"] for p in result["players"]] == [john.id]


@pytest.mark.asyncio
async def test_uncommitted_ignores_unapproved_players(db_session):
    await _create_player(
        db_session, "Wait", "Ing", registration_status=RegistrationStatus.PENDING.value
    )
    await db_session.commit()

    with pytest.raises(NoPlayersFoundError, match="No uncommitted players found"):
        await player_search_service.get_uncommitted_players(db_session, {})


@pytest.mark.asyncio
async def test_uncommitted_empty_result_messages(db_session):
    player = await _create_player(db_session, "Only", "One")
    await _batting(db_session, player, "2024", batting_average=0.250)
    await db_session.commit()

    with pytest.raises(NoPlayersFoundError, match="with this name"):
        await player_search_service.get_uncommitted_players(db_session, {"name": "zzz"})
    with pytest.raises(NoPlayersFoundError, match="season year 2019-20"):
        await player_search_service.get_uncommitted_players(db_session, {"seasonYear": "2019-20"})
    with pytest.raises(NoPlayersFoundError, match="^No uncommitted players found$"):
        await player_search_service.get_uncommitted_players(
            db_session, {"batting_average_min": "0.400"}
        )


@pytest.mark.asyncio
async def test_uncommitted_pagination(db_session):
    for i in range(12):
        await _create_player(db_session, f"Page{i:02d}", "Player")
    await db_session.commit()

    result = await player_search_service.get_uncommitted_players(
        db_session, {"page": "2", "limit": "5"}
    )

    assert len(result["players"]) == 5
    assert result["pagination"]["totalPages"] == 3
    assert result["pagination"]["hasMore"] is True


# ──────────────────────────────────────────────────────────────
# Dashboards
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_dashboard_without_follows_returns_empty_page(db_session):
    coach = await _create_coach(db_session)
    suggested = await _create_player(db_session, "Sug", "Gested", profile_completeness=80)
    await db_session.commit()
    viewer = await user_service.get_user_by_id(db_session, coach.id)

    result = await player_search_service.get_dashboard(db_session, viewer, {})

    assert result["players"] == []
    assert result["pagination"]["totalCount"] == 0
    assert result["pagination"]["hasMore"] is False
    assert result["coach"]["followingCount"] == 0
    assert [p["id"] for p in result["suggestions"]] == [suggested.id]
    assert [p["id"] for p in result["topPlayers"]] == [suggested.id]


@pytest.mark.asyncio
async def test_dashboard_filters_followed_players_by_stats_type_bounds(db_session):
    coach = await _create_coach(db_session)
    strong = await _create_player(db_session, "Strong", "Arm")
    weak = await _create_player(db_session, "Weak", "Arm")
    await stats_service.record_season_stats(db_session, strong.id, "pitching", "2024", {"era": 2.10})
    await stats_service.record_season_stats(db_session, weak.id, "pitching", "2024", {"era": 5.80})
    unfollowed = await _create_player(db_session, "Not", "Followed")
    for player in (strong, weak):
        db_session.add(Follow(follower_id=coach.id, following_id=player.id))
    await db_session.commit()
    viewer = await user_service.get_user_by_id(db_session, coach.id)

    result = await player_search_service.get_dashboard(
        db_session, viewer, {"statsType": "pitching", "era_max": "3.00"}
    )

    assert [p["id"] for p in result["players"]] == [strong.id]
    assert result["players"][0]["isFollowing"] is True
    assert result["coach"]["followingCount"] == 2
    # Suggestions exclude everyone already followed
    assert [p["id"] for p in result["suggestions"]] == [unfollowed.id]


# ──────────────────────────────────────────────────────────────
# Team roster
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_roster_unknown_team_returns_none(db_session):
    assert await player_search_service.get_team_roster(db_session, None, 999, {}) is None


@pytest.mark.asyncio
async def test_roster_filters_and_sorts(db_session):
    team = await _create_team(db_session, "Roadrunners", division="JUCO")
    other_team = await _create_team(db_session, "Suns")
    zed = await _create_player(db_session, "Zed", "Adams", team=team, position="SS")
    amy = await _create_player(db_session, "Amy", "Baker", team=team, position="SS")
    await _create_player(db_session, "Cal", "Cole", team=team, position="C")
    await _create_player(db_session, "Dee", "Dunn", team=other_team, position="SS")
    await db_session.commit()

    result = await player_search_service.get_team_roster(
        db_session, None, team.id, {"position": "ss"}
    )

    assert result["team"]["name"] == "Roadrunners"
    assert [p["id"] for p in result["players"]] == [amy.id, zed.id]
    assert result["pagination"]["totalCount"] == 2

    result = await player_search_service.get_team_roster(
        db_session, None, team.id, {"position": "SS", "sortBy": "lastName", "sortOrder": "desc"}
    )
    assert [p["id"] for p in result["players"]] == [amy.id, zed.id]


@pytest.mark.asyncio
async def test_roster_sorts_jersey_numbers_numerically(db_session):
    team = await _create_team(db_session)
    ten = await _create_player(db_session, "Ten", "Player", team=team, jersey_number="10")
    nine = await _create_player(db_session, "Nine", "Player", team=team, jersey_number="9")
    two = await _create_player(db_session, "Two", "Player", team=team, jersey_number="2")
    await db_session.commit()

    result = await player_search_service.get_team_roster(
        db_session, None, team.id, {"sortBy": "jerseyNumber"}
    )
    assert [p["id"] for p in result["players"]] == [two.id, nine.id, ten.id]

    result = await player_search_service.get_team_roster(
        db_session, None, team.id, {"sortBy": "jersey_number", "sortOrder": "desc"}
    )
    assert [p["id"] for p in result["players"]] == [ten.id, nine.id, two.id]


@pytest.mark.asyncio
async def test_roster_bounds_and_season(db_session):
    team = await _create_team(db_session)
    good = await _create_player(db_session, "Good", "Glove", team=team)
    shaky = await _create_player(db_session, "Shaky", "Glove", team=team)
    await stats_service.record_season_stats(db_session, good.id, "fielding", "2024", {"errors": 1})
    await stats_service.record_season_stats(db_session, shaky.id, "fielding", "2024", {"errors": 9})
    await stats_service.record_season_stats(db_session, shaky.id, "fielding", "2022", {"errors": 0})
    await db_session.commit()

    result = await player_search_service.get_team_roster(
        db_session, None, team.id, {"errors_max": "2"}
    )
    assert [p["id"] for p in result["players"]] == [good.id]

    result = await player_search_service.get_team_roster(
        db_session, None, team.id, {"seasonYear": "2022", "errors_max": "2"}
    )
    assert [p["id"] for p in result["players"]] == [shaky.id]
