"""Submission Repository - Data access for injury report submissions"""
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, wrap_persistence_errors
from ..domain.models import Submission
from ..domain.enums import SubmissionStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Submission fields automations are allowed to change
MUTABLE_FIELDS = {"status", "priority", "assigned_user_id", "assigned_at"}


class SubmissionRepository:
    """Repository for submission operations"""

    def __init__(self):
        self._submissions: Collection = get_collection("submissions")
        self._field_values: Collection = get_collection("submission_field_values")

    def _load_field_values(self, submission_id: str) -> List[Dict[str, Any]]:
        cursor = self._field_values.find({"submission_id": submission_id}).sort("field.order", ASCENDING)
        values = []
        for doc in cursor:
            doc.pop("_id", None)
            values.append(doc)
        return values

    def _to_model(self, doc: Dict[str, Any]) -> Submission:
        doc.pop("_id", None)
        doc["field_values"] = self._load_field_values(doc["submission_id"])
        return Submission.model_validate(doc)

    @wrap_persistence_errors
    def get_submission(self, submission_id: str) -> Optional[Submission]:
        """Get submission with its field values and field descriptors"""
        doc = self._submissions.find_one({"submission_id": submission_id})
        if doc:
            return self._to_model(doc)
        return None

    @wrap_persistence_errors
    def list_open_submissions_for_template(
        self,
        template_id: str,
        statuses: Iterable[SubmissionStatus]
    ) -> List[Submission]:
        """Get submissions of a template that are in one of the given statuses"""
        cursor = self._submissions.find({
            "template_id": template_id,
            "status": {"$in": [s.value for s in statuses]}
        }).sort("submitted_at", ASCENDING)
        return [self._to_model(doc) for doc in cursor]

    @wrap_persistence_errors
    def update_submission(self, submission_id: str, updates: Dict[str, Any]) -> None:
        """Update automation-mutable fields of a submission"""
        unknown = set(updates) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable by automations: {sorted(unknown)}")

        values = {
            key: (value.value if isinstance(value, Enum) else value)
            for key, value in updates.items()
        }
        self._submissions.update_one({"submission_id": submission_id}, {"$set": values})
        logger.info(
            f"Updated submission {submission_id}: {sorted(values)}",
            extra={"submission_id": submission_id}
        )
