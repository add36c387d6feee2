"""
Authentication helpers: password hashing, JWT access tokens and email checks.

Token issuance (login, refresh, password reset) lives outside this service;
the API only needs to verify bearer tokens and hash passwords captured at
registration time.
"""

import os
import re
from datetime import timedelta
from typing import Dict, Optional

import bcrypt
import jwt

from recruiting.utils.datetime_utils import utcnow
import logging

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to embed (must include "user_id")
        expires_delta: Lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded token
    """
    payload = dict(data)
    payload["exp"] = utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Decode and validate a JWT access token.

    Returns:
        The token claims, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Access token expired")
        return None
    except jwt.InvalidTokenError:
        return None


def validate_email(email: str) -> bool:
    """Basic syntactic email check."""
    return bool(email) and bool(_EMAIL_RE.match(email.strip()))


def normalize_email(email: str) -> str:
    """
    Trim and lowercase an email address.

    Raises:
        ValueError: If the email is not valid
    """
    normalized = (email or "").strip().lower()
    if not validate_email(normalized):
        raise ValueError("Please enter a valid email address")
    return normalized
