"""Billing provider webhook route handlers."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.services import outseta_service, stripe_service, webhook_service
from recruiting.services.stripe_service import WebhookSignatureError
from recruiting.models.schemas import WebhookAck

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/webhooks/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, session: AsyncSession = Depends(get_db_session)):
    """
    Receive a Stripe event.

    Only a bad signature is rejected. Once verified the event is always
    acknowledged, whether or not it could be applied.
    """
    payload = await request.body()
    try:
        event = stripe_service.construct_event(payload, request.headers.get("stripe-signature"))
    except WebhookSignatureError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")

    logger.info(f"Stripe webhook received: {event.get('type')} ({event.get('id')})")
    try:
        await webhook_service.handle_stripe_event(session, event)
    except Exception as e:
        await session.rollback()
        logger.error(f"Error handling Stripe event {event.get('id')}: {e}", exc_info=True)
    return {"received": True}


@router.post("/api/webhooks/outseta", response_model=WebhookAck)
async def outseta_webhook(request: Request, session: AsyncSession = Depends(get_db_session)):
    """Receive an Outseta webhook. Acknowledged once the signature checks out."""
    payload = await request.body()
    if not outseta_service.verify_signature(payload, request.headers.get("x-hub-signature-256")):
        logger.warning("Rejected Outseta webhook: invalid signature")
        raise HTTPException(status_code=400, detail="Webhook Error: invalid signature")

    try:
        event = json.loads(payload or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Webhook Error: invalid JSON")
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Webhook Error: invalid payload")

    try:
        logger.info(f"Outseta webhook received: {event.get('Type') or event.get('EventType') or 'subscription'}")
        await webhook_service.handle_outseta_event(session, event)
    except Exception as e:
        await session.rollback()
        logger.error(f"Error handling Outseta webhook: {e}", exc_info=True)
    return {"received": True}
