"""Audit Writer - Append-only audit records for automation changes"""
from enum import Enum
from typing import Any, Optional

from ..domain.models import AuditRecord
from ..domain.enums import AuditAction
from ..repositories.audit_repo import AuditRepository
from ..utils.idgen import generate_audit_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


class AuditWriter:
    """
    Write audit records (append-only)

    Every submission field an automation changes produces one record.
    """

    def __init__(self, repo: Optional[AuditRepository] = None):
        self.repo = repo or AuditRepository()

    def write_record(
        self,
        submission_id: str,
        action: AuditAction,
        old_value: Any,
        new_value: Any,
        automation_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> AuditRecord:
        """Write a single audit record"""
        record = AuditRecord(
            audit_id=generate_audit_id(),
            submission_id=submission_id,
            action=action,
            old_value=_as_text(old_value),
            new_value=_as_text(new_value),
            at=utc_now(),
            automation_id=automation_id,
            correlation_id=correlation_id
        )
        logger.debug(
            f"Writing audit {action.value}: {record.old_value} -> {record.new_value}",
            extra={"submission_id": submission_id, "automation_id": automation_id}
        )
        return self.repo.create_record(record)

    def write_priority_set(self, submission_id: str, old_value: Any, new_value: Any, **context) -> AuditRecord:
        """Priority changed by an automation"""
        return self.write_record(
            submission_id, AuditAction.PRIORITY_SET_BY_AUTOMATION, old_value, new_value, **context
        )

    def write_assigned(self, submission_id: str, old_value: Any, new_value: Any, **context) -> AuditRecord:
        """Assignee changed by an automation"""
        return self.write_record(
            submission_id, AuditAction.ASSIGNED_BY_AUTOMATION, old_value, new_value, **context
        )

    def write_status_set(self, submission_id: str, old_value: Any, new_value: Any, **context) -> AuditRecord:
        """Status changed by an automation"""
        return self.write_record(
            submission_id, AuditAction.STATUS_SET_BY_AUTOMATION, old_value, new_value, **context
        )
