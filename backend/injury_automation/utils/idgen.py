"""ID generators for engine-created records"""
import uuid
from datetime import datetime, timezone
from typing import Optional

NOTIFICATION_PREFIX = "NTF"
AUDIT_PREFIX = "AUD"
CORRELATION_PREFIX = "COR"


def generate_id(prefix: Optional[str] = None, length: int = 12) -> str:
    """
    Random hex ID, optionally prefixed

    Examples:
        >>> generate_id('NTF')
        'NTF-3f9c0a7e51b2'
        >>> generate_id()
        '3f9c0a7e51b2'
    """
    token = uuid.uuid4().hex[:length]
    return f"{prefix}-{token}" if prefix else token


def generate_notification_id() -> str:
    return generate_id(NOTIFICATION_PREFIX)


def generate_audit_id() -> str:
    return generate_id(AUDIT_PREFIX)


def generate_correlation_id() -> str:
    """COR-<UTC yyyymmddHHMMSS>-<8 hex>, sortable by start time"""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{CORRELATION_PREFIX}-{stamp}-{generate_id(length=8)}"
