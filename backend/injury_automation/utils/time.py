"""Time Utilities - UTC timestamps and formatting"""
from datetime import datetime, timezone
from typing import Optional
from dateutil import parser as date_parser
from dateutil import tz


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (MongoDB returns naive UTC values)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def hours_since(dt: datetime, now: Optional[datetime] = None) -> float:
    """
    Calculate fractional hours elapsed since the given datetime

    Returns:
        Positive if in past, negative if in future
    """
    now = now or utc_now()
    return (ensure_utc(now) - ensure_utc(dt)).total_seconds() / 3600


def format_locale(dt: datetime, timezone_name: str = "UTC") -> str:
    """
    Format datetime the way a US-English browser renders toLocaleString()

    Example: 3/7/2024, 9:05:00 AM

    Unknown timezone names fall back to UTC.
    """
    zone = tz.gettz(timezone_name) or timezone.utc
    local = ensure_utc(dt).astimezone(zone)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )
