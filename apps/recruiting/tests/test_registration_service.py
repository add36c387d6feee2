"""
Tests for pending registrations and their completion from billing webhooks.

Stripe and Outseta network calls are replaced with AsyncMock; the database
is the in-memory SQLite fixture.
"""

from datetime import timedelta

import pytest
import pytz
from unittest.mock import AsyncMock
from sqlalchemy import select, func, update

from recruiting.database.models import (
    PendingRegistration,
    Subscription,
    Team,
    User,
    UserRole,
)
from recruiting.services import auth_service, outseta_service, registration_service, stripe_service
from recruiting.services.registration_service import (
    normalize_subscription_status,
    subscription_details_from_outseta,
    subscription_details_from_stripe,
)
from recruiting.utils.datetime_utils import utcnow


def _coach_payload(**overrides):
    payload = {
        "first_name": "Casey",
        "last_name": "Coach",
        "email": "Casey.Coach@Example.com",
        "password": "supersecret",
        "role": UserRole.COACH.value,
        "plan": "coach_monthly",
        "school": "Mesa CC",
        "division": "JUCO",
        "conference": "ACCAC",
    }
    payload.update(overrides)
    return payload


def _as_utc(value):
    # SQLite hands back naive datetimes
    return value if value.tzinfo else pytz.UTC.localize(value)


async def _count(session, model):
    return (await session.execute(select(func.count()).select_from(model))).scalar()


async def _create_pending(session, **overrides):
    created = await registration_service.create_pending_registration(session, _coach_payload(**overrides))
    return created["id"]


# ──────────────────────────────────────────────────────────────
# Status and provider payload normalization
# ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("active", "active"),
        ("Active", "active"),
        ("trialing", "trialing"),
        ("trial", "trialing"),
        ("canceled", "canceled"),
        ("Cancelled", "canceled"),
        ("expired", "canceled"),
        ("past_due", "past_due"),
        ("PastDue", "past_due"),
        ("Past Due", "past_due"),
        ("unpaid", "past_due"),
        ("incomplete", "none"),
        ("", "none"),
        (None, "none"),
    ],
)
def test_normalize_subscription_status(raw, expected):
    assert normalize_subscription_status(raw) == expected


def test_stripe_details_read_period_from_first_item():
    details = subscription_details_from_stripe(
        {
            "id": "sub_1",
            "status": "active",
            "customer": {"id": "cus_1"},
            "items": {
                "data": [
                    {
                        "price": {"id": "price_1"},
                        "current_period_start": 1735689600,
                        "current_period_end": 1738368000,
                    }
                ]
            },
        }
    )
    assert details.stripe_customer_id == "cus_1"
    assert details.stripe_price_id == "price_1"
    assert details.current_period_end.year == 2025
    assert details.current_period_end.month == 2


def test_stripe_details_default_period_when_missing():
    before = utcnow()
    details = subscription_details_from_stripe({"status": "active"}, subscription_id="sub_9")

    assert details.stripe_subscription_id == "sub_9"
    assert details.current_period_start >= before
    drift = details.current_period_end - details.current_period_start - timedelta(days=30)
    assert abs(drift) < timedelta(seconds=5)


def test_outseta_details_fallback_fields():
    details = subscription_details_from_outseta(
        {
            "Uid": "sub_o",
            "Status": "Cancelled",
            "StartDate": "2025-01-01T00:00:00Z",
            "RenewalDate": "2025-02-01T00:00:00Z",
            "Plan": {"Name": "Scout Yearly"},
        },
        account_uid="acc_1",
    )
    assert details.status == "canceled"
    assert details.plan == "Scout Yearly"
    assert details.outseta_account_uid == "acc_1"
    assert details.current_period_end.month == 2


# ──────────────────────────────────────────────────────────────
# Pending registrations
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_pending_registration_hashes_password(db_session):
    created = await registration_service.create_pending_registration(db_session, _coach_payload())

    assert created["email"] == "casey.coach@example.com"
    assert created["status"] == "pending"

    pending = await registration_service.get_pending_registration(db_session, created["id"])
    assert pending.password_hash != "supersecret"
    assert auth_service.verify_password("supersecret", pending.password_hash)
    assert pending.school == "Mesa CC"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"first_name": " "}, "First name is required"),
        ({"email": "not-an-email"}, "valid email"),
        ({"password": "short"}, "at least 8 characters"),
        ({"role": "player"}, "Role must be one of"),
        ({"school": None}, "School is required"),
        ({"role": "scout", "team_id": None}, "Team is required"),
        ({"role": "scout", "team_id": 999, "job_title": "Scout"}, "Team not found"),
    ],
)
async def test_create_pending_registration_validation(db_session, overrides, message):
    with pytest.raises(ValueError, match=message):
        await registration_service.create_pending_registration(db_session, _coach_payload(**overrides))


@pytest.mark.asyncio
async def test_create_pending_registration_for_scout(db_session):
    team = Team(name="Suns")
    db_session.add(team)
    await db_session.commit()

    created = await registration_service.create_pending_registration(
        db_session, _coach_payload(role="scout", team_id=team.id, job_title="Area Scout", school=None)
    )
    pending = await registration_service.get_pending_registration(db_session, created["id"])

    assert pending.team_id == team.id
    assert pending.job_title == "Area Scout"


@pytest.mark.asyncio
async def test_create_pending_registration_rejects_existing_account(db_session):
    db_session.add(User(email="casey.coach@example.com", role=UserRole.COACH.value))
    await db_session.commit()

    with pytest.raises(ValueError, match="already exists"):
        await registration_service.create_pending_registration(db_session, _coach_payload())


@pytest.mark.asyncio
async def test_get_pending_registration_bad_id(db_session):
    assert await registration_service.get_pending_registration(db_session, "abc") is None
    assert await registration_service.get_pending_registration(db_session, None) is None
    assert await registration_service.get_pending_registration(db_session, 404) is None


# ──────────────────────────────────────────────────────────────
# Stripe completion
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stripe_completion_creates_user_and_subscription(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    retrieve = AsyncMock(
        return_value={
            "id": "sub_123",
            "status": "active",
            "customer": "cus_123",
            "current_period_start": 1735689600,
            "current_period_end": 1738368000,
            "items": {"data": [{"price": {"id": "price_abc"}}]},
        }
    )
    monkeypatch.setattr(stripe_service, "retrieve_subscription", retrieve)

    result = await registration_service.complete_stripe_registration(
        db_session, pending_id, "sub_123", customer_id="cus_123"
    )

    assert result is not None
    retrieve.assert_awaited_once_with("sub_123")

    user = (await db_session.execute(select(User).where(User.id == result["user_id"]))).scalar_one()
    assert user.email == "casey.coach@example.com"
    assert user.registration_status == "approved"
    assert user.subscription_status == "active"
    assert user.subscription_plan == "coach_monthly"
    assert user.school == "Mesa CC"
    assert auth_service.verify_password("supersecret", user.password_hash)

    subscription = (
        await db_session.execute(select(Subscription).where(Subscription.id == result["subscription_id"]))
    ).scalar_one()
    assert subscription.user_id == user.id
    assert subscription.stripe_subscription_id == "sub_123"
    assert subscription.stripe_price_id == "price_abc"
    assert subscription.plan == "coach_monthly"

    pending = await registration_service.get_pending_registration(db_session, pending_id)
    assert pending.status == "completed"
    assert pending.completed_at is not None


@pytest.mark.asyncio
async def test_replayed_completion_creates_nothing(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    retrieve = AsyncMock(return_value={"id": "sub_123", "status": "active"})
    monkeypatch.setattr(stripe_service, "retrieve_subscription", retrieve)

    first = await registration_service.complete_stripe_registration(db_session, pending_id, "sub_123")
    second = await registration_service.complete_stripe_registration(db_session, pending_id, "sub_123")

    assert first is not None
    assert second is None
    assert await _count(db_session, User) == 1
    assert await _count(db_session, Subscription) == 1
    # Completed registrations short-circuit before asking the provider
    assert retrieve.await_count == 1


@pytest.mark.asyncio
async def test_claim_stops_a_delivery_holding_a_stale_record(db_session):
    pending_id = await _create_pending(db_session)
    stale = await registration_service.get_pending_registration(db_session, pending_id)

    # Another delivery completed the registration after this one loaded it
    await db_session.execute(
        update(PendingRegistration)
        .where(PendingRegistration.id == pending_id)
        .values(status="completed")
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()
    assert stale.status == "pending"

    async def fetch():
        return subscription_details_from_stripe({"id": "sub_1", "status": "active"})

    assert await registration_service.complete_pending_registration(db_session, stale, fetch) is None
    assert await _count(db_session, User) == 0
    assert await _count(db_session, Subscription) == 0


@pytest.mark.asyncio
async def test_missing_period_end_defaults_to_thirty_days(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    monkeypatch.setattr(
        stripe_service,
        "retrieve_subscription",
        AsyncMock(return_value={"id": "sub_123", "status": "active"}),
    )

    before = utcnow()
    result = await registration_service.complete_stripe_registration(db_session, pending_id, "sub_123")

    subscription = (
        await db_session.execute(select(Subscription).where(Subscription.id == result["subscription_id"]))
    ).scalar_one()
    period_end = _as_utc(subscription.current_period_end)
    assert period_end is not None
    assert before + timedelta(days=30) - timedelta(seconds=5) <= period_end
    assert period_end <= utcnow() + timedelta(days=30)


@pytest.mark.asyncio
async def test_unknown_pending_registration_is_a_noop(db_session, monkeypatch):
    retrieve = AsyncMock()
    monkeypatch.setattr(stripe_service, "retrieve_subscription", retrieve)

    assert await registration_service.complete_stripe_registration(db_session, 999, "sub_1") is None
    assert await registration_service.complete_stripe_registration(db_session, "oops", "sub_1") is None
    retrieve.assert_not_awaited()
    assert await _count(db_session, User) == 0


@pytest.mark.asyncio
async def test_provider_failure_leaves_registration_pending(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    monkeypatch.setattr(
        stripe_service, "retrieve_subscription", AsyncMock(side_effect=RuntimeError("stripe down"))
    )

    assert await registration_service.complete_stripe_registration(db_session, pending_id, "sub_1") is None

    pending = await registration_service.get_pending_registration(db_session, pending_id)
    assert pending.status == "pending"
    assert await _count(db_session, User) == 0
    assert await _count(db_session, Subscription) == 0


@pytest.mark.asyncio
async def test_duplicate_email_rolls_back_the_claim(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    # Account created through another path after the sign-up started
    db_session.add(User(email="casey.coach@example.com", role=UserRole.COACH.value))
    await db_session.commit()
    monkeypatch.setattr(
        stripe_service, "retrieve_subscription", AsyncMock(return_value={"id": "sub_1", "status": "active"})
    )

    assert await registration_service.complete_stripe_registration(db_session, pending_id, "sub_1") is None

    pending = await registration_service.get_pending_registration(db_session, pending_id)
    assert pending.status == "pending"
    assert await _count(db_session, User) == 1
    assert await _count(db_session, Subscription) == 0


@pytest.mark.asyncio
async def test_event_subscription_used_without_subscription_id(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    retrieve = AsyncMock()
    monkeypatch.setattr(stripe_service, "retrieve_subscription", retrieve)

    result = await registration_service.complete_stripe_registration(
        db_session, pending_id, None, event_subscription={"status": "trialing", "customer": "cus_9"}
    )

    retrieve.assert_not_awaited()
    user = (await db_session.execute(select(User).where(User.id == result["user_id"]))).scalar_one()
    assert user.subscription_status == "trialing"
    assert user.stripe_customer_id == "cus_9"


# ──────────────────────────────────────────────────────────────
# Outseta completion
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_outseta_completion_matches_by_email_and_backfills(db_session, monkeypatch):
    pending_id = await _create_pending(db_session, payment_provider="outseta")
    get_person = AsyncMock(return_value={"Uid": "per_1", "Email": "CASEY.COACH@example.com"})
    get_subscription = AsyncMock(
        return_value={
            "Uid": "osub_1",
            "SubscriptionStatus": "Active",
            "CurrentPeriodStart": "2025-01-01T00:00:00Z",
            "CurrentPeriodEnd": "2025-02-01T00:00:00Z",
            "Plan": {"Name": "Coach Monthly"},
        }
    )
    monkeypatch.setattr(outseta_service, "is_configured", lambda: True)
    monkeypatch.setattr(outseta_service, "get_person", get_person)
    monkeypatch.setattr(outseta_service, "get_subscription", get_subscription)

    payload = {"Uid": "osub_1", "Account": {"Uid": "acc_1", "PrimaryContact": {"Uid": "per_1"}}}
    result = await registration_service.complete_outseta_registration(db_session, payload)

    assert result is not None
    get_person.assert_awaited_once_with("per_1")
    get_subscription.assert_awaited_once_with("osub_1")

    pending = await registration_service.get_pending_registration(db_session, pending_id)
    assert pending.status == "completed"
    assert pending.outseta_account_uid == "acc_1"
    assert pending.outseta_person_uid == "per_1"
    assert pending.outseta_subscription_uid == "osub_1"

    user = (await db_session.execute(select(User).where(User.id == result["user_id"]))).scalar_one()
    assert user.payment_provider == "outseta"
    assert user.outseta_account_uid == "acc_1"
    # The plan chosen at sign-up wins over the provider's plan name
    assert user.subscription_plan == "coach_monthly"

    # A replay finds the record by account UID and does nothing
    assert await registration_service.complete_outseta_registration(db_session, payload) is None
    assert get_person.await_count == 1
    assert await _count(db_session, User) == 1


@pytest.mark.asyncio
async def test_outseta_completion_without_api_uses_payload(db_session, monkeypatch):
    await _create_pending(db_session)
    monkeypatch.setattr(outseta_service, "is_configured", lambda: False)
    pending = (await db_session.execute(select(PendingRegistration))).scalar_one()
    pending.outseta_account_uid = "acc_2"
    await db_session.commit()

    result = await registration_service.complete_outseta_registration(
        db_session,
        {"Uid": "osub_2", "SubscriptionStatus": "Trialing", "Account": {"Uid": "acc_2"}},
    )

    subscription = (
        await db_session.execute(select(Subscription).where(Subscription.id == result["subscription_id"]))
    ).scalar_one()
    assert subscription.status == "trialing"
    assert subscription.outseta_subscription_uid == "osub_2"
    assert subscription.current_period_end is not None


@pytest.mark.asyncio
async def test_outseta_completion_with_no_match(db_session, monkeypatch):
    monkeypatch.setattr(outseta_service, "is_configured", lambda: False)
    result = await registration_service.complete_outseta_registration(
        db_session, {"Uid": "osub_3", "Account": {"Uid": "acc_missing"}}
    )
    assert result is None


# ──────────────────────────────────────────────────────────────
# Lifecycle updates
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stripe_update_and_delete(db_session, monkeypatch):
    pending_id = await _create_pending(db_session)
    monkeypatch.setattr(
        stripe_service, "retrieve_subscription", AsyncMock(return_value={"id": "sub_1", "status": "active"})
    )
    result = await registration_service.complete_stripe_registration(db_session, pending_id, "sub_1")

    assert await registration_service.sync_stripe_subscription(
        db_session, {"id": "sub_1", "status": "past_due", "cancel_at_period_end": True}
    )
    user = (await db_session.execute(select(User).where(User.id == result["user_id"]))).scalar_one()
    assert user.subscription_status == "past_due"

    assert await registration_service.cancel_stripe_subscription(db_session, {"id": "sub_1"})
    subscription = (
        await db_session.execute(select(Subscription).where(Subscription.stripe_subscription_id == "sub_1"))
    ).scalar_one()
    assert subscription.status == "canceled"
    assert subscription.canceled_at is not None
    assert user.subscription_status == "canceled"
    assert user.subscription_plan == "none"

    assert await registration_service.sync_stripe_subscription(db_session, {"id": "sub_unknown"}) is False


@pytest.mark.asyncio
async def test_upsert_stripe_subscription_for_existing_user(db_session):
    user = User(email="exists@example.com", role=UserRole.COACH.value)
    db_session.add(user)
    await db_session.commit()

    details = subscription_details_from_stripe(
        {"id": "sub_up", "status": "active", "customer": "cus_up"}, plan="coach_yearly"
    )
    result = await registration_service.upsert_stripe_subscription(db_session, user.id, details)
    again = await registration_service.upsert_stripe_subscription(db_session, user.id, details)

    assert result["subscription_id"] == again["subscription_id"]
    assert user.subscription_plan == "coach_yearly"
    assert user.stripe_customer_id == "cus_up"
    assert await registration_service.upsert_stripe_subscription(db_session, 999, details) is None
