"""Audit Repository - Data access for submission audit records"""
from pymongo.collection import Collection

from .mongo_client import get_collection, wrap_persistence_errors
from ..domain.models import AuditRecord
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit record operations (append-only)"""

    def __init__(self):
        self._audit: Collection = get_collection("submission_audit")

    @wrap_persistence_errors
    def create_record(self, record: AuditRecord) -> AuditRecord:
        """Create an audit record (append-only)"""
        doc = record.model_dump(mode="json")
        doc["at"] = record.at
        doc["_id"] = record.audit_id

        self._audit.insert_one(doc)
        logger.info(
            f"Created audit record: {record.action.value}",
            extra={
                "submission_id": record.submission_id,
                "audit_id": record.audit_id,
                "automation_id": record.automation_id
            }
        )
        return record
