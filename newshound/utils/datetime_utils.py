"""
Datetime utility functions for alert timestamps

Alerts are always compared in UTC. Values arriving from queue payloads may be
ISO strings, naive datetimes (assumed UTC) or aware datetimes in any zone.
"""
from datetime import datetime, timezone
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)


def to_utc(value: Optional[Union[datetime, str]]) -> Optional[datetime]:
    """
    Convert a timestamp to an aware UTC datetime

    Handles multiple cases:
    - None -> None
    - Naive datetime -> tagged as UTC
    - Aware datetime -> converted to UTC
    - String ISO format (with or without 'Z') -> parsed, then as above

    Args:
        value: datetime, ISO string, or None

    Returns:
        Aware UTC datetime or None

    Raises:
        ValueError: If a string cannot be parsed
        TypeError: If the value is of an unsupported type
    """
    if value is None:
        return None

    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))

    if not isinstance(value, datetime):
        raise TypeError(f"Cannot convert {type(value)} to datetime: {value!r}")

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)
