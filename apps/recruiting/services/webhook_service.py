"""
Billing webhook dispatch.

Routes verified Stripe and Outseta events to the registration service.
Handlers never raise for business conditions: a webhook that cannot be
applied is logged and still acknowledged so the provider stops retrying.
"""

from typing import Dict
from sqlalchemy.ext.asyncio import AsyncSession
from recruiting.services import registration_service, stripe_service
from recruiting.services.registration_service import subscription_details_from_stripe
import logging

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
# Stripe
# ────────────────────────────────────────────────────────────────────────────


async def _stripe_checkout_completed(session: AsyncSession, checkout: Dict) -> None:
    metadata = checkout.get("metadata") or {}
    pending_id = metadata.get("pendingRegistrationId")
    logger.info(f"Checkout completed: session={checkout.get('id')} pending={pending_id}")

    if pending_id:
        await registration_service.complete_stripe_registration(
            session,
            pending_id,
            subscription_id=checkout.get("subscription"),
            customer_id=checkout.get("customer"),
        )
        return

    user_id = metadata.get("userId")
    plan = metadata.get("plan")
    if not user_id or not plan:
        logger.warning(f"Checkout session {checkout.get('id')} has no registration or user metadata")
        return

    subscription = {}
    if checkout.get("subscription"):
        subscription = await stripe_service.retrieve_subscription(checkout["subscription"])
    details = subscription_details_from_stripe(
        subscription,
        customer_id=checkout.get("customer"),
        subscription_id=checkout.get("subscription"),
        plan=plan,
    )
    await registration_service.upsert_stripe_subscription(session, user_id, details)


async def _stripe_subscription_created(session: AsyncSession, subscription: Dict) -> None:
    pending_id = (subscription.get("metadata") or {}).get("pendingRegistrationId")
    if not pending_id:
        logger.info(f"Subscription {subscription.get('id')} created outside registration")
        return
    customer = subscription.get("customer")
    await registration_service.complete_stripe_registration(
        session,
        pending_id,
        subscription_id=subscription.get("id"),
        customer_id=customer.get("id") if isinstance(customer, dict) else customer,
        event_subscription=subscription,
    )


async def _stripe_subscription_updated(session: AsyncSession, subscription: Dict) -> None:
    await registration_service.sync_stripe_subscription(session, subscription)


async def _stripe_subscription_deleted(session: AsyncSession, subscription: Dict) -> None:
    await registration_service.cancel_stripe_subscription(session, subscription)


async def _stripe_payment_succeeded(session: AsyncSession, invoice: Dict) -> None:
    logger.info(f"Payment succeeded for invoice {invoice.get('id')} (subscription={invoice.get('subscription')})")


async def _stripe_payment_failed(session: AsyncSession, invoice: Dict) -> None:
    logger.warning(f"Payment failed for invoice {invoice.get('id')} (subscription={invoice.get('subscription')})")


STRIPE_HANDLERS = {
    "checkout.session.completed": _stripe_checkout_completed,
    "customer.subscription.created": _stripe_subscription_created,
    "customer.subscription.updated": _stripe_subscription_updated,
    "customer.subscription.deleted": _stripe_subscription_deleted,
    "invoice.payment_succeeded": _stripe_payment_succeeded,
    "invoice.payment_failed": _stripe_payment_failed,
}


async def handle_stripe_event(session: AsyncSession, event: Dict) -> None:
    """
    Apply a verified Stripe event.

    Unknown event types are logged and ignored.
    """
    event_type = event.get("type")
    handler = STRIPE_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Stripe event type: {event_type}")
        return
    data = (event.get("data") or {}).get("object") or {}
    await handler(session, data)


# ────────────────────────────────────────────────────────────────────────────
# Outseta
# ────────────────────────────────────────────────────────────────────────────


async def _outseta_payment(session: AsyncSession, data: Dict) -> None:
    logger.info(f"Outseta payment event for account {(data.get('Account') or {}).get('Uid')}")


OUTSETA_HANDLERS = {
    "account.subscription.created": registration_service.complete_outseta_registration,
    "account.subscription.updated": registration_service.sync_outseta_subscription,
    "account.subscription.cancelled": registration_service.cancel_outseta_subscription,
    "payment.succeeded": _outseta_payment,
    "payment.failed": _outseta_payment,
}


async def handle_outseta_event(session: AsyncSession, event: Dict) -> None:
    """
    Apply an Outseta webhook.

    Outseta posts ``{"Type": ..., "Data": {...}}``; a bare subscription
    payload is treated as ``account.subscription.created``.
    """
    event_type = (
        event.get("Type") or event.get("EventType") or event.get("eventType") or event.get("type")
    )
    data = event.get("Data") or event.get("data") or {}
    if not isinstance(data, dict):
        logger.warning(f"Outseta event {event_type} has a non-object payload")
        return
    if not event_type and event.get("Uid"):
        event_type, data = "account.subscription.created", event

    handler = OUTSETA_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Outseta event type: {event_type}")
        return
    await handler(session, data)
