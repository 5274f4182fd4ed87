"""Rule Loader - Validated deserialization of stored automation documents"""
import json
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..domain.models import (
    AutomationRecord, AutomationDefinition, TriggerSpec, ActionSpec, StoredDocument
)
from ..domain.errors import MalformedRuleError

ModelT = TypeVar("ModelT", bound=BaseModel)


def _decode(raw: StoredDocument, automation_id: str, document: str) -> Dict[str, Any]:
    """JSON text or mapping -> mapping"""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedRuleError(
                f"Automation {automation_id}: {document} is not valid JSON",
                details={"automation_id": automation_id, "document": document, "reason": str(e)}
            )
    if not isinstance(raw, dict):
        raise MalformedRuleError(
            f"Automation {automation_id}: {document} must be an object",
            details={"automation_id": automation_id, "document": document}
        )
    return raw


def _validate(model: Type[ModelT], data: Dict[str, Any], automation_id: str, document: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedRuleError(
            f"Automation {automation_id}: invalid {document}",
            details={
                "automation_id": automation_id,
                "document": document,
                "errors": e.errors(include_url=False, include_input=False),
            }
        )


def parse_automation(record: AutomationRecord) -> AutomationDefinition:
    """
    Validate the trigger and action documents of an automation

    Escalation actions and email recipients are left undecoded; they are read
    by parse_escalation_actions and parse_email_recipients where they are used.

    Args:
        record: Automation as read from storage

    Returns:
        AutomationDefinition with typed trigger and actions

    Raises:
        MalformedRuleError: If either document fails to decode or validate
    """
    automation_id = record.automation_id

    trigger = _validate(
        TriggerSpec,
        _decode(record.trigger_conditions, automation_id, "trigger_conditions"),
        automation_id,
        "trigger_conditions"
    )
    actions = _validate(
        ActionSpec,
        _decode(record.actions, automation_id, "actions"),
        automation_id,
        "actions"
    )
    return AutomationDefinition(record=record, trigger=trigger, actions=actions)


def parse_escalation_actions(record: AutomationRecord) -> ActionSpec:
    """Escalation action chain; a missing document is an empty chain"""
    if record.escalation_actions in (None, ""):
        return ActionSpec()
    return _validate(
        ActionSpec,
        _decode(record.escalation_actions, record.automation_id, "escalation_actions"),
        record.automation_id,
        "escalation_actions"
    )


def parse_email_recipients(record: AutomationRecord) -> List[str]:
    """Automation-level SEND_EMAIL recipients (JSON text or list)"""
    raw: Any = record.email_recipients
    automation_id = record.automation_id
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedRuleError(
                f"Automation {automation_id}: email_recipients is not valid JSON",
                details={"automation_id": automation_id, "reason": str(e)}
            )
    if not isinstance(raw, list) or not all(isinstance(r, str) for r in raw):
        raise MalformedRuleError(
            f"Automation {automation_id}: email_recipients must be a list of strings",
            details={"automation_id": automation_id}
        )
    return raw
