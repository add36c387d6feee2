"""
Stripe API client.

Wraps the synchronous Stripe SDK for use from async code: webhook signature
verification, subscription retrieval and checkout session creation.
"""

import asyncio
import json
import logging
import os
from typing import Dict, Optional

import stripe

logger = logging.getLogger(__name__)


class WebhookSignatureError(ValueError):
    """Webhook payload or signature could not be verified."""


def _get_secret_key() -> Optional[str]:
    return os.environ.get("STRIPE_SECRET_KEY")


def _get_webhook_secret() -> Optional[str]:
    return os.environ.get("STRIPE_WEBHOOK_SECRET")


def price_id_for_plan(plan: Optional[str]) -> Optional[str]:
    """
    Look up the Stripe price for a plan.

    Prices are configured as ``STRIPE_PRICE_IDS=coach_monthly=price_123,scout_yearly=price_456``.
    """
    if not plan:
        return None
    for entry in os.environ.get("STRIPE_PRICE_IDS", "").split(","):
        name, _, price_id = entry.partition("=")
        if name.strip() == plan and price_id.strip():
            return price_id.strip()
    return None


def construct_event(payload: bytes, signature: Optional[str]) -> Dict:
    """
    Verify a webhook delivery and return the event as a plain dict.

    Raises:
        WebhookSignatureError: If the secret is missing, the payload is not
            JSON, or the signature does not match
    """
    secret = _get_webhook_secret()
    if not secret:
        raise WebhookSignatureError("STRIPE_WEBHOOK_SECRET not configured")
    if not signature:
        raise WebhookSignatureError("Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(payload, signature, secret)
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(f"Invalid signature: {e}")
    except ValueError as e:
        raise WebhookSignatureError(f"Invalid payload: {e}")

    # Signature verified; the raw body is the event
    return json.loads(payload)


async def retrieve_subscription(subscription_id: str) -> Dict:
    """
    Fetch a subscription from Stripe.

    Raises:
        stripe.StripeError: On any API failure
    """
    subscription = await asyncio.to_thread(
        stripe.Subscription.retrieve, subscription_id, api_key=_get_secret_key()
    )
    return subscription.to_dict()


async def create_checkout_session(
    pending_registration_id: int, email: str, plan: str, price_id: str
) -> Dict:
    """
    Start a subscription checkout for a pending registration.

    The pending registration id travels in the session (and subscription)
    metadata so the webhook can complete the sign-up.

    Returns:
        {"id": <checkout session id>, "url": <hosted checkout url>}
    """
    metadata = {"pendingRegistrationId": str(pending_registration_id), "plan": plan}
    session = await asyncio.to_thread(
        stripe.checkout.Session.create,
        api_key=_get_secret_key(),
        mode="subscription",
        customer_email=email,
        line_items=[{"price": price_id, "quantity": 1}],
        metadata=metadata,
        subscription_data={"metadata": metadata},
        success_url=os.environ.get("CHECKOUT_SUCCESS_URL", "http://localhost:3000/signup/success"),
        cancel_url=os.environ.get("CHECKOUT_CANCEL_URL", "http://localhost:3000/signup/cancel"),
    )
    logger.info(f"Created checkout session {session.id} for pending registration {pending_registration_id}")
    return {"id": session.id, "url": session.url}
