"""
Registration service: pending sign-ups and their completion once a billing
provider confirms the subscription.

A pending registration moves from ``pending`` to ``completed`` exactly once.
The move is a conditional UPDATE executed in the same transaction that
creates the User and Subscription rows, so replayed or concurrent webhook
deliveries for the same registration create nothing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from recruiting.database.models import (
    PaymentProvider,
    PendingRegistration,
    PendingRegistrationStatus,
    RegistrationStatus,
    Subscription,
    SubscriptionStatus,
    Team,
    User,
    UserRole,
)
from recruiting.services import auth_service, outseta_service, stripe_service
from recruiting.services.user_service import get_user_by_email
from recruiting.utils.datetime_utils import (
    default_period_end,
    parse_provider_timestamp,
    utcnow,
)
import logging

logger = logging.getLogger(__name__)

# Roles that can self-register through a paid plan
REGISTRABLE_ROLES = {UserRole.COACH.value, UserRole.SCOUT.value, UserRole.JUCO_COACH.value}

_STATUS_ALIASES = {
    "active": SubscriptionStatus.ACTIVE.value,
    "trialing": SubscriptionStatus.TRIALING.value,
    "trial": SubscriptionStatus.TRIALING.value,
    "canceled": SubscriptionStatus.CANCELED.value,
    "cancelled": SubscriptionStatus.CANCELED.value,
    "expired": SubscriptionStatus.CANCELED.value,
    "past_due": SubscriptionStatus.PAST_DUE.value,
    "pastdue": SubscriptionStatus.PAST_DUE.value,
    "unpaid": SubscriptionStatus.PAST_DUE.value,
}


@dataclass
class SubscriptionDetails:
    """Provider subscription data normalized for persistence."""

    provider: str
    status: str
    current_period_start: datetime
    current_period_end: datetime
    plan: Optional[str] = None
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    outseta_subscription_uid: Optional[str] = None
    outseta_account_uid: Optional[str] = None
    outseta_person_uid: Optional[str] = None


def normalize_subscription_status(value: Optional[str]) -> str:
    """
    Map a provider status onto SubscriptionStatus.

    Examples:
        >>> normalize_subscription_status("Cancelled")
        'canceled'
        >>> normalize_subscription_status("Past Due")
        'past_due'
        >>> normalize_subscription_status("incomplete")
        'none'
    """
    if not value:
        return SubscriptionStatus.NONE.value
    key = str(value).strip().lower().replace(" ", "_")
    return _STATUS_ALIASES.get(key, _STATUS_ALIASES.get(key.replace("_", ""), SubscriptionStatus.NONE.value))


def _billing_period(start_value, end_value):
    start = parse_provider_timestamp(start_value) or utcnow()
    end = parse_provider_timestamp(end_value) or default_period_end()
    return start, end


def _first_subscription_item(subscription: Dict) -> Dict:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items and isinstance(items[0], dict) else {}


def subscription_details_from_stripe(
    subscription: Dict,
    customer_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
    plan: Optional[str] = None,
) -> SubscriptionDetails:
    """
    Build SubscriptionDetails from a Stripe subscription object.

    Newer API versions report the billing period on the subscription item
    rather than the subscription itself; both are accepted.
    """
    subscription = subscription or {}
    item = _first_subscription_item(subscription)
    start, end = _billing_period(
        subscription.get("current_period_start") or item.get("current_period_start"),
        subscription.get("current_period_end") or item.get("current_period_end"),
    )
    customer = subscription.get("customer") or customer_id
    if isinstance(customer, dict):
        customer = customer.get("id")

    return SubscriptionDetails(
        provider=PaymentProvider.STRIPE.value,
        status=normalize_subscription_status(subscription.get("status")),
        current_period_start=start,
        current_period_end=end,
        plan=plan or (subscription.get("metadata") or {}).get("plan"),
        trial_start=parse_provider_timestamp(subscription.get("trial_start")),
        trial_end=parse_provider_timestamp(subscription.get("trial_end")),
        cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
        stripe_customer_id=customer,
        stripe_subscription_id=subscription.get("id") or subscription_id,
        stripe_price_id=(item.get("price") or {}).get("id"),
    )


def subscription_details_from_outseta(
    data: Dict, account_uid: Optional[str] = None, person_uid: Optional[str] = None
) -> SubscriptionDetails:
    """Build SubscriptionDetails from an Outseta subscription payload."""
    data = data or {}
    start, end = _billing_period(
        data.get("CurrentPeriodStart") or data.get("StartDate"),
        data.get("CurrentPeriodEnd") or data.get("RenewalDate"),
    )
    account = data.get("Account") or {}
    return SubscriptionDetails(
        provider=PaymentProvider.OUTSETA.value,
        status=normalize_subscription_status(data.get("SubscriptionStatus") or data.get("Status")),
        current_period_start=start,
        current_period_end=end,
        plan=(data.get("Plan") or {}).get("Name"),
        outseta_subscription_uid=data.get("Uid"),
        outseta_account_uid=account.get("Uid") or account_uid,
        outseta_person_uid=person_uid,
    )


# ────────────────────────────────────────────────────────────────────────────
# Pending registrations
# ────────────────────────────────────────────────────────────────────────────


def _required(data: Dict, field: str, message: str) -> str:
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(message)
    return value.strip() if isinstance(value, str) else value


async def create_pending_registration(session: AsyncSession, data: Dict) -> Dict:
    """
    Store a sign-up awaiting payment.

    Args:
        session: Database session
        data: Registration fields (firstName/lastName style keys already
            converted to snake_case by the request schema)

    Returns:
        Dict with id, email, role, plan and status

    Raises:
        ValueError: On missing or invalid fields, or when the email already
            belongs to an account
    """
    first_name = _required(data, "first_name", "First name is required")
    email = auth_service.normalize_email(data.get("email") or "")
    password = _required(data, "password", "Password is required")
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")

    role = data.get("role")
    if role not in REGISTRABLE_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(sorted(REGISTRABLE_ROLES))}")

    pending = PendingRegistration(
        first_name=first_name,
        last_name=(data.get("last_name") or "").strip() or None,
        email=email,
        role=role,
        plan=data.get("plan"),
        state=data.get("state"),
        profile_image=data.get("profile_image"),
        payment_provider=data.get("payment_provider") or PaymentProvider.STRIPE.value,
        status=PendingRegistrationStatus.PENDING.value,
    )

    if role == UserRole.SCOUT.value:
        team_id = _required(data, "team_id", "Team is required for scouts")
        team = (await session.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
        if team is None:
            raise ValueError("Team not found")
        pending.team_id = team.id
        pending.job_title = _required(data, "job_title", "Job title is required for scouts")
    else:
        pending.school = _required(data, "school", "School is required for coaches")
        pending.division = _required(data, "division", "Division is required for coaches")
        pending.conference = _required(data, "conference", "Conference is required for coaches")

    if await get_user_by_email(session, email) is not None:
        raise ValueError("An account with this email already exists")

    pending.password_hash = auth_service.hash_password(password)
    session.add(pending)
    await session.commit()
    await session.refresh(pending)

    logger.info(f"Created pending registration {pending.id} for {email} ({role})")
    return {
        "id": pending.id,
        "email": pending.email,
        "role": pending.role,
        "plan": pending.plan,
        "status": pending.status,
    }


async def attach_stripe_session(session: AsyncSession, pending_id: int, stripe_session_id: str) -> None:
    """Remember the checkout session opened for a pending registration."""
    await session.execute(
        update(PendingRegistration)
        .where(PendingRegistration.id == pending_id)
        .values(stripe_session_id=stripe_session_id)
    )
    await session.commit()


async def get_pending_registration(session: AsyncSession, pending_id) -> Optional[PendingRegistration]:
    """Get a pending registration by ID; non-numeric IDs match nothing."""
    try:
        pending_id = int(pending_id)
    except (TypeError, ValueError):
        return None
    result = await session.execute(
        select(PendingRegistration)
        .where(PendingRegistration.id == pending_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_outseta_pending_registration(
    session: AsyncSession, account_uid: Optional[str], person_uid: Optional[str]
) -> Optional[PendingRegistration]:
    """
    Locate the pending registration for an Outseta account.

    Looks up by account UID first. Otherwise fetches the primary contact from
    Outseta, matches the newest pending registration with that email and
    back-fills the account and person UIDs on it.

    Raises:
        httpx.HTTPError: If the Outseta person lookup fails
    """
    if account_uid:
        result = await session.execute(
            select(PendingRegistration)
            .where(PendingRegistration.outseta_account_uid == account_uid)
            .order_by(PendingRegistration.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        pending = result.scalar_one_or_none()
        if pending is not None:
            return pending

    if not person_uid or not outseta_service.is_configured():
        return None

    person = await outseta_service.get_person(person_uid)
    email = (person.get("Email") or "").strip().lower()
    if not email:
        return None

    result = await session.execute(
        select(PendingRegistration)
        .where(
            func.lower(PendingRegistration.email) == email,
            PendingRegistration.status == PendingRegistrationStatus.PENDING.value,
        )
        .order_by(PendingRegistration.id.desc())
        .limit(1)
    )
    pending = result.scalar_one_or_none()
    if pending is None:
        return None

    pending.outseta_account_uid = account_uid
    pending.outseta_person_uid = person_uid
    pending.payment_provider = PaymentProvider.OUTSETA.value
    await session.commit()
    logger.info(f"Linked pending registration {pending.id} to Outseta account {account_uid}")
    return pending


# ────────────────────────────────────────────────────────────────────────────
# Completion
# ────────────────────────────────────────────────────────────────────────────


def _build_user(pending: PendingRegistration, details: SubscriptionDetails) -> User:
    user = User(
        first_name=pending.first_name,
        last_name=pending.last_name,
        email=pending.email.strip().lower(),
        password_hash=pending.password_hash,
        role=pending.role,
        state=pending.state,
        profile_image=pending.profile_image,
        registration_status=RegistrationStatus.APPROVED.value,
        is_active=True,
        payment_provider=details.provider,
        stripe_customer_id=details.stripe_customer_id,
        subscription_status=details.status,
        subscription_plan=pending.plan or details.plan,
        subscription_end_date=details.current_period_end,
        outseta_account_uid=details.outseta_account_uid or pending.outseta_account_uid,
        outseta_person_uid=details.outseta_person_uid or pending.outseta_person_uid,
    )
    if pending.role == UserRole.SCOUT.value:
        user.team_id = pending.team_id
        user.job_title = pending.job_title
    else:
        user.school = pending.school
        user.division = pending.division
        user.conference = pending.conference
    return user


def _build_subscription(user_id: int, pending: PendingRegistration, details: SubscriptionDetails) -> Subscription:
    return Subscription(
        user_id=user_id,
        payment_provider=details.provider,
        stripe_customer_id=details.stripe_customer_id,
        stripe_subscription_id=details.stripe_subscription_id,
        stripe_price_id=details.stripe_price_id,
        outseta_subscription_uid=details.outseta_subscription_uid,
        outseta_account_uid=details.outseta_account_uid or pending.outseta_account_uid,
        plan=pending.plan or details.plan,
        status=details.status,
        current_period_start=details.current_period_start,
        current_period_end=details.current_period_end,
        trial_start=details.trial_start,
        trial_end=details.trial_end,
        cancel_at_period_end=details.cancel_at_period_end,
    )


async def complete_pending_registration(
    session: AsyncSession,
    pending: Optional[PendingRegistration],
    fetch_details: Callable[[], Awaitable[SubscriptionDetails]],
) -> Optional[Dict]:
    """
    Turn a paid pending registration into a User and a Subscription.

    Args:
        session: Database session
        pending: The resolved pending registration (None when not found)
        fetch_details: Coroutine factory returning the provider's
            authoritative subscription details

    Returns:
        {"user_id", "subscription_id"} on success; None when there was
        nothing to do or the completion failed and was rolled back. Errors
        never propagate, so webhook callers can always acknowledge.
    """
    if pending is None:
        logger.error("Pending registration not found")
        return None
    if pending.status == PendingRegistrationStatus.COMPLETED.value:
        logger.info(f"Registration {pending.id} already completed")
        return None

    pending_id = pending.id
    try:
        details = await fetch_details()

        claim = await session.execute(
            update(PendingRegistration)
            .where(
                PendingRegistration.id == pending_id,
                PendingRegistration.status == PendingRegistrationStatus.PENDING.value,
            )
            .values(
                status=PendingRegistrationStatus.COMPLETED.value,
                completed_at=utcnow(),
                outseta_subscription_uid=details.outseta_subscription_uid
                or PendingRegistration.outseta_subscription_uid,
            )
            .execution_options(synchronize_session=False)
        )
        if claim.rowcount == 0:
            await session.rollback()
            logger.info(f"Registration {pending_id} already completed by another delivery")
            return None

        user = _build_user(pending, details)
        session.add(user)
        await session.flush()

        subscription = _build_subscription(user.id, pending, details)
        session.add(subscription)
        await session.flush()

        await session.commit()
        logger.info(
            f"Registration completed for user {user.id} "
            f"(pending={pending_id}, provider={details.provider}, status={details.status})"
        )
        return {"user_id": user.id, "subscription_id": subscription.id}
    except Exception as e:
        await session.rollback()
        logger.error(f"Error completing registration {pending_id}, rolled back: {e}", exc_info=True)
        return None


async def complete_stripe_registration(
    session: AsyncSession,
    pending_id,
    subscription_id: Optional[str],
    customer_id: Optional[str] = None,
    event_subscription: Optional[Dict] = None,
) -> Optional[Dict]:
    """
    Complete a Stripe-paid registration.

    The subscription is re-read from Stripe; the object carried by the event
    is only used when there is no subscription ID to look up.
    """
    pending = await get_pending_registration(session, pending_id)

    async def fetch_details():
        if subscription_id:
            subscription = await stripe_service.retrieve_subscription(subscription_id)
        else:
            subscription = event_subscription or {}
        return subscription_details_from_stripe(
            subscription,
            customer_id=customer_id,
            subscription_id=subscription_id,
            plan=pending.plan if pending is not None else None,
        )

    return await complete_pending_registration(session, pending, fetch_details)


async def complete_outseta_registration(session: AsyncSession, data: Dict) -> Optional[Dict]:
    """
    Complete an Outseta-paid registration from an ``account.subscription.created`` payload.

    Raises:
        httpx.HTTPError: If the primary contact lookup fails
    """
    account = data.get("Account") or {}
    account_uid = account.get("Uid")
    person_uid = (account.get("PrimaryContact") or {}).get("Uid")
    pending = await find_outseta_pending_registration(session, account_uid, person_uid)

    async def fetch_details():
        payload = data
        uid = data.get("Uid")
        if uid and outseta_service.is_configured():
            payload = {**data, **(await outseta_service.get_subscription(uid))}
        return subscription_details_from_outseta(payload, account_uid=account_uid, person_uid=person_uid)

    return await complete_pending_registration(session, pending, fetch_details)


# ────────────────────────────────────────────────────────────────────────────
# Subscription lifecycle for existing users
# ────────────────────────────────────────────────────────────────────────────


def _mirror_on_user(user: User, subscription: Subscription) -> None:
    user.payment_provider = subscription.payment_provider
    user.subscription_status = subscription.status
    user.subscription_plan = subscription.plan
    user.subscription_end_date = subscription.current_period_end
    if subscription.stripe_customer_id:
        user.stripe_customer_id = subscription.stripe_customer_id


async def _get_user(session: AsyncSession, user_id) -> Optional[User]:
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    return (await session.execute(select(User).where(User.id == user_id))).scalar_one_or_none()


async def upsert_stripe_subscription(
    session: AsyncSession, user_id, details: SubscriptionDetails
) -> Optional[Dict]:
    """
    Create or refresh a Stripe subscription for an existing user.

    Returns:
        {"user_id", "subscription_id"}, or None if the user does not exist
    """
    user = await _get_user(session, user_id)
    if user is None:
        logger.error(f"Checkout completed for unknown user {user_id}")
        return None

    subscription = None
    if details.stripe_subscription_id:
        result = await session.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == details.stripe_subscription_id)
        )
        subscription = result.scalar_one_or_none()
    if subscription is None:
        subscription = Subscription(user_id=user.id, payment_provider=details.provider)
        session.add(subscription)

    subscription.stripe_customer_id = details.stripe_customer_id
    subscription.stripe_subscription_id = details.stripe_subscription_id
    subscription.stripe_price_id = details.stripe_price_id
    subscription.plan = details.plan
    subscription.status = details.status
    subscription.current_period_start = details.current_period_start
    subscription.current_period_end = details.current_period_end
    subscription.cancel_at_period_end = details.cancel_at_period_end
    _mirror_on_user(user, subscription)

    await session.commit()
    logger.info(f"Subscription {details.stripe_subscription_id} saved for user {user.id}")
    return {"user_id": user.id, "subscription_id": subscription.id}


async def _subscription_with_user(session: AsyncSession, condition):
    result = await session.execute(
        select(Subscription, User).join(User, User.id == Subscription.user_id).where(condition).limit(1)
    )
    return result.first()


async def sync_stripe_subscription(session: AsyncSession, data: Dict) -> bool:
    """
    Apply a ``customer.subscription.updated`` payload.

    Returns:
        False if no stored subscription matches
    """
    row = await _subscription_with_user(session, Subscription.stripe_subscription_id == data.get("id"))
    if row is None:
        logger.warning(f"Stripe subscription {data.get('id')} not found")
        return False
    subscription, user = row

    details = subscription_details_from_stripe(data)
    subscription.status = details.status
    subscription.current_period_start = details.current_period_start
    subscription.current_period_end = details.current_period_end
    subscription.cancel_at_period_end = details.cancel_at_period_end
    subscription.trial_start = details.trial_start
    subscription.trial_end = details.trial_end
    if details.stripe_price_id:
        subscription.stripe_price_id = details.stripe_price_id
    _mirror_on_user(user, subscription)

    await session.commit()
    logger.info(f"Stripe subscription {data.get('id')} updated: {details.status}")
    return True


async def cancel_stripe_subscription(session: AsyncSession, data: Dict) -> bool:
    """
    Apply a ``customer.subscription.deleted`` payload.

    The user keeps no plan once the subscription is gone.
    """
    row = await _subscription_with_user(session, Subscription.stripe_subscription_id == data.get("id"))
    if row is None:
        logger.warning(f"Stripe subscription {data.get('id')} not found")
        return False
    subscription, user = row

    subscription.status = SubscriptionStatus.CANCELED.value
    subscription.canceled_at = utcnow()
    user.subscription_status = SubscriptionStatus.CANCELED.value
    user.subscription_plan = "none"

    await session.commit()
    logger.info(f"Stripe subscription {data.get('id')} canceled")
    return True


async def sync_outseta_subscription(session: AsyncSession, data: Dict) -> bool:
    """Apply an ``account.subscription.updated`` payload."""
    row = await _subscription_with_user(session, Subscription.outseta_subscription_uid == data.get("Uid"))
    if row is None:
        logger.warning(f"Outseta subscription {data.get('Uid')} not found")
        return False
    subscription, user = row

    subscription.status = normalize_subscription_status(data.get("SubscriptionStatus"))
    period_end = parse_provider_timestamp(data.get("CurrentPeriodEnd") or data.get("RenewalDate"))
    if period_end is not None:
        subscription.current_period_end = period_end
    user.subscription_status = subscription.status
    user.subscription_end_date = subscription.current_period_end

    await session.commit()
    logger.info(f"Outseta subscription {data.get('Uid')} updated: {subscription.status}")
    return True


async def cancel_outseta_subscription(session: AsyncSession, data: Dict) -> bool:
    """Apply an ``account.subscription.cancelled`` payload."""
    row = await _subscription_with_user(session, Subscription.outseta_subscription_uid == data.get("Uid"))
    if row is None:
        logger.warning(f"Outseta subscription {data.get('Uid')} not found")
        return False
    subscription, user = row

    subscription.status = SubscriptionStatus.CANCELED.value
    subscription.canceled_at = utcnow()
    user.subscription_status = SubscriptionStatus.CANCELED.value

    await session.commit()
    logger.info(f"Outseta subscription {data.get('Uid')} canceled")
    return True
