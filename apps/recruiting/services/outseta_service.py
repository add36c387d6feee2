"""
Outseta REST API client.

Looks up people and subscriptions for billing webhooks and verifies webhook
signatures. Requests are authenticated with ``Outseta <key>:<secret>``.
"""

import hashlib
import hmac
import logging
import os
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)


def _get_base_url() -> Optional[str]:
    """Outseta API base, e.g. https://acme.outseta.com/api/v1."""
    domain = os.environ.get("OUTSETA_DOMAIN")
    if not domain:
        return None
    return f"https://{domain.rstrip('/')}/api/v1"


def _get_headers() -> Dict[str, str]:
    key = os.environ.get("OUTSETA_API_KEY", "")
    secret = os.environ.get("OUTSETA_API_SECRET", "")
    return {"Authorization": f"Outseta {key}:{secret}", "Accept": "application/json"}


def is_configured() -> bool:
    """True when the API domain and credentials are set."""
    return bool(
        _get_base_url()
        and os.environ.get("OUTSETA_API_KEY")
        and os.environ.get("OUTSETA_API_SECRET")
    )


async def _get(path: str) -> Dict:
    base_url = _get_base_url()
    if not base_url:
        raise RuntimeError("OUTSETA_DOMAIN not set")
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.get(f"{base_url}{path}", headers=_get_headers())
        resp.raise_for_status()
        return resp.json()


async def get_person(person_uid: str) -> Dict:
    """
    Fetch a person (contact) by UID.

    Raises:
        httpx.HTTPError: On network or HTTP status failure
    """
    return await _get(f"/crm/people/{person_uid}")


async def get_subscription(subscription_uid: str) -> Dict:
    """
    Fetch a subscription by UID.

    Raises:
        httpx.HTTPError: On network or HTTP status failure
    """
    return await _get(f"/billing/subscriptions/{subscription_uid}")


def verify_signature(body: bytes, signature: Optional[str]) -> bool:
    """
    Check the ``X-Hub-Signature-256`` header (``sha256=<hex hmac>``).

    Verification is skipped when OUTSETA_WEBHOOK_SECRET is not configured.
    """
    secret = os.environ.get("OUTSETA_WEBHOOK_SECRET")
    if not secret:
        return True
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    provided = signature.split("=", 1)[1] if signature.startswith("sha256=") else signature
    return hmac.compare_digest(expected, provided)
