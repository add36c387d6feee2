"""Paid sign-up route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.api.routes import limiter
from recruiting.database.db import get_db_session
from recruiting.services import registration_service, stripe_service
from recruiting.models.schemas import PendingRegistrationCreate, PendingRegistrationResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/registrations", response_model=PendingRegistrationResponse, status_code=201)
@limiter.limit("10/minute")
async def create_registration(
    request: Request,
    payload: PendingRegistrationCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Start a coach or scout sign-up.

    The account is held as a pending registration until the billing
    provider reports the subscription. For Stripe plans with a configured
    price a Checkout session is opened and its URL returned; Outseta sign-ups
    are matched later by account or email.
    """
    try:
        pending = await registration_service.create_pending_registration(session, payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating pending registration: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error creating registration")

    response = {**pending, "checkoutSessionId": None, "checkoutUrl": None}
    price_id = stripe_service.price_id_for_plan(payload.plan)
    if payload.payment_provider == "stripe" and price_id:
        try:
            checkout = await stripe_service.create_checkout_session(
                pending["id"], pending["email"], payload.plan, price_id
            )
            await registration_service.attach_stripe_session(session, pending["id"], checkout["id"])
        except Exception as e:
            logger.error(f"Error creating checkout for registration {pending['id']}: {e}", exc_info=True)
            raise HTTPException(status_code=502, detail="Could not start checkout")
        response["checkoutSessionId"] = checkout["id"]
        response["checkoutUrl"] = checkout["url"]
    return response
