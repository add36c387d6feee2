"""
Datetime utility functions.
Provides timezone-aware helpers shared by services and billing webhooks.
"""

from datetime import datetime, timedelta
from typing import Any, Optional
import pytz

from recruiting.utils.constants import DEFAULT_PERIOD_DAYS


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def parse_provider_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp as sent by a billing provider.

    Stripe sends unix seconds, Outseta sends ISO-8601 strings. Anything that
    cannot be interpreted yields None so callers can apply their own default.

    Examples:
        >>> parse_provider_timestamp(1735689600)
        datetime.datetime(2025, 1, 1, 0, 0, tzinfo=<UTC>)
        >>> parse_provider_timestamp("2025-01-01T00:00:00Z")
        datetime.datetime(2025, 1, 1, 0, 0, tzinfo=<UTC>)
        >>> parse_provider_timestamp("not a date") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else pytz.UTC.localize(value)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, pytz.UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lstrip("-").isdigit():
            return parse_provider_timestamp(int(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else pytz.UTC.localize(parsed)

    return None


def default_period_end(start: Optional[datetime] = None) -> datetime:
    """Fallback billing period end: DEFAULT_PERIOD_DAYS after ``start`` (or now)."""
    return (start or utcnow()) + timedelta(days=DEFAULT_PERIOD_DAYS)


def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for API responses."""
    return value.isoformat() if value else None
