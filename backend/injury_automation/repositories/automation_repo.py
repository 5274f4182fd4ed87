"""Automation Repository - Data access for form automations"""
from datetime import datetime
from typing import List
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, wrap_persistence_errors
from ..domain.models import AutomationRecord
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AutomationRepository:
    """
    Repository for automation records

    Automations are authored elsewhere; the engine only reads them and bumps
    their execution counters.
    """

    def __init__(self):
        self._automations: Collection = get_collection("automations")

    def _to_models(self, cursor) -> List[AutomationRecord]:
        records = []
        for doc in cursor:
            doc.pop("_id", None)
            records.append(AutomationRecord.model_validate(doc))
        return records

    @wrap_persistence_errors
    def get_active_automations_for_template(self, template_id: str) -> List[AutomationRecord]:
        """Active automations of a template in execution order"""
        cursor = self._automations.find(
            {"template_id": template_id, "active": True}
        ).sort([("order", ASCENDING), ("automation_id", ASCENDING)])
        return self._to_models(cursor)

    @wrap_persistence_errors
    def get_escalation_automations(self) -> List[AutomationRecord]:
        """Active automations with escalation enabled, grouped by template"""
        cursor = self._automations.find(
            {"active": True, "escalation_enabled": True}
        ).sort([("template_id", ASCENDING), ("order", ASCENDING), ("automation_id", ASCENDING)])
        return self._to_models(cursor)

    @wrap_persistence_errors
    def record_execution(self, automation_id: str, executed_at: datetime) -> None:
        """Increment execution count and stamp last execution time"""
        self._automations.update_one(
            {"automation_id": automation_id},
            {
                "$inc": {"execution_count": 1},
                "$set": {"last_executed_at": executed_at}
            }
        )
        logger.debug(
            f"Recorded execution for automation {automation_id}",
            extra={"automation_id": automation_id}
        )
