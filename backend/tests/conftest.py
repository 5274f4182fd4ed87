"""
Pytest Configuration and Fixtures

In-memory stand-ins for the MongoDB repositories and the Graph email
service. Every fake appends to one shared `action_log` so tests can assert
the order in which effects happened.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import pytest

from injury_automation.config.settings import Settings
from injury_automation.domain.enums import (
    SubmissionStatus, SubmissionPriority, NotificationPriority, NotificationType
)
from injury_automation.domain.errors import EmailSendError, PersistenceError
from injury_automation.domain.models import (
    AuditRecord, AutomationRecord, FieldDescriptor, FieldValue, Notification, Submission
)
from injury_automation.engine.action_executor import ActionExecutor
from injury_automation.engine.audit_writer import AuditWriter
from injury_automation.engine.escalation import EscalationSweeper
from injury_automation.engine.interpolator import VariableInterpolator
from injury_automation.engine.runner import AutomationRunner
from injury_automation.utils.idgen import generate_notification_id


NOW = datetime(2024, 3, 7, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Fakes
# =============================================================================

class FakeSubmissionRepository:
    def __init__(self, log: List[tuple]):
        self.log = log
        self.submissions: Dict[str, Submission] = {}
        self.fail_updates = False

    def add(self, submission: Submission) -> Submission:
        self.submissions[submission.submission_id] = submission
        return submission

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        submission = self.submissions.get(submission_id)
        return submission.model_copy(deep=True) if submission else None

    def list_open_submissions_for_template(self, template_id, statuses) -> List[Submission]:
        statuses = set(statuses)
        return [
            s.model_copy(deep=True)
            for s in self.submissions.values()
            if s.template_id == template_id and s.status in statuses
        ]

    def update_submission(self, submission_id: str, updates: Dict[str, Any]) -> None:
        if self.fail_updates:
            raise PersistenceError("update failed", details={"submission_id": submission_id})
        self.log.append(("update_submission", submission_id, dict(updates)))
        current = self.submissions[submission_id]
        self.submissions[submission_id] = current.model_copy(update=updates)


class FakeAutomationRepository:
    def __init__(self, log: List[tuple]):
        self.log = log
        self.records: List[AutomationRecord] = []
        self.executions: List[tuple] = []
        self.fail_loads = False

    def add(self, record: AutomationRecord) -> AutomationRecord:
        self.records.append(record)
        return record

    def get_active_automations_for_template(self, template_id: str) -> List[AutomationRecord]:
        if self.fail_loads:
            raise PersistenceError("load failed")
        # Insertion order on purpose; the engine does its own ordering
        return [r for r in self.records if r.template_id == template_id and r.active]

    def get_escalation_automations(self) -> List[AutomationRecord]:
        if self.fail_loads:
            raise PersistenceError("load failed")
        return [r for r in self.records if r.active and r.escalation_enabled]

    def record_execution(self, automation_id: str, executed_at: datetime) -> None:
        self.log.append(("record_execution", automation_id))
        self.executions.append((automation_id, executed_at))


class FakeAuditRepository:
    def __init__(self, log: List[tuple]):
        self.log = log
        self.records: List[AuditRecord] = []

    def create_record(self, record: AuditRecord) -> AuditRecord:
        self.log.append(("audit", record.action.value, record.old_value, record.new_value))
        self.records.append(record)
        return record


class FakeNotificationRepository:
    def __init__(self, log: List[tuple]):
        self.log = log
        self.notifications: List[Notification] = []

    def create_notification(
        self,
        tenant_id: str,
        recipient_user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        submission_id: Optional[str] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        action_url: Optional[str] = None
    ) -> Notification:
        notification = Notification(
            notification_id=generate_notification_id(),
            tenant_id=tenant_id,
            recipient_user_id=recipient_user_id,
            submission_id=submission_id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            action_url=action_url,
            created_at=NOW
        )
        self.log.append(("notification", recipient_user_id, title))
        self.notifications.append(notification)
        return notification


class FakeUserRepository:
    def __init__(self):
        self.active_users: Dict[str, List[str]] = {}

    def get_active_user_ids_for_tenant(self, tenant_id: str) -> List[str]:
        return list(self.active_users.get(tenant_id, []))


class FakeEmailService:
    def __init__(self, log: List[tuple]):
        self.log = log
        self.sent: List[Dict[str, str]] = []
        self.failing_recipients: set = set()

    def send_email(self, to: str, subject: str, html_body: str) -> bool:
        if to in self.failing_recipients:
            raise EmailSendError(f"Graph sendMail request failed for {to}")
        self.log.append(("email", to, subject))
        self.sent.append({"to": to, "subject": subject, "body": html_body})
        return True


# =============================================================================
# Collaborator fixtures
# =============================================================================

@pytest.fixture
def now() -> datetime:
    """Fixed clock used by every builder"""
    return NOW


@pytest.fixture
def action_log() -> List[tuple]:
    return []


@pytest.fixture
def submission_repo(action_log) -> FakeSubmissionRepository:
    return FakeSubmissionRepository(action_log)


@pytest.fixture
def automation_repo(action_log) -> FakeAutomationRepository:
    return FakeAutomationRepository(action_log)


@pytest.fixture
def audit_repo(action_log) -> FakeAuditRepository:
    return FakeAuditRepository(action_log)


@pytest.fixture
def notification_repo(action_log) -> FakeNotificationRepository:
    return FakeNotificationRepository(action_log)


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def email_service(action_log) -> FakeEmailService:
    return FakeEmailService(action_log)


@pytest.fixture
def interpolator() -> VariableInterpolator:
    return VariableInterpolator(timezone_name="UTC")


@pytest.fixture
def executor(
    submission_repo, notification_repo, user_repo, email_service, audit_repo, interpolator
) -> ActionExecutor:
    return ActionExecutor(
        submission_repo=submission_repo,
        notification_repo=notification_repo,
        user_repo=user_repo,
        email_service=email_service,
        audit_writer=AuditWriter(repo=audit_repo),
        interpolator=interpolator
    )


@pytest.fixture
def runner(submission_repo, automation_repo, executor) -> AutomationRunner:
    return AutomationRunner(
        submission_repo=submission_repo,
        automation_repo=automation_repo,
        executor=executor
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, default_escalation_hours=24, email_enabled=False)


@pytest.fixture
def sweeper(submission_repo, automation_repo, runner, test_settings) -> EscalationSweeper:
    return EscalationSweeper(
        submission_repo=submission_repo,
        automation_repo=automation_repo,
        runner=runner,
        config=test_settings
    )


# =============================================================================
# Builders
# =============================================================================

@pytest.fixture
def make_submission():
    """
    Build a Submission

    `fields` maps field ID to the submitted value; labels default to the
    field ID unless given in `labels`.
    """
    def _make(
        submission_id: str = "SUB-1",
        template_id: str = "TPL-1",
        tenant_id: str = "TEN-1",
        status: SubmissionStatus = SubmissionStatus.NEW,
        priority: Optional[SubmissionPriority] = None,
        submitted_at: Optional[datetime] = None,
        fields: Optional[Dict[str, Any]] = None,
        labels: Optional[Dict[str, str]] = None,
        display_values: Optional[Dict[str, Any]] = None,
        extra_field_values: Optional[List[FieldValue]] = None
    ) -> Submission:
        labels = labels or {}
        display_values = display_values or {}
        field_values = []
        for order, (field_id, value) in enumerate((fields or {}).items()):
            payload = {"value": value}
            if field_id in display_values:
                payload["displayValue"] = display_values[field_id]
            field_values.append(FieldValue(
                field_id=field_id,
                value=json.dumps(payload),
                field=FieldDescriptor(label=labels.get(field_id, field_id), order=order)
            ))
        field_values.extend(extra_field_values or [])

        return Submission(
            submission_id=submission_id,
            template_id=template_id,
            tenant_id=tenant_id,
            status=status,
            priority=priority,
            submitted_at=submitted_at or NOW,
            field_values=field_values
        )
    return _make


@pytest.fixture
def make_automation():
    """Build an AutomationRecord with its rule documents stored as JSON text"""
    def _make(
        automation_id: str = "AUTO-1",
        template_id: str = "TPL-1",
        order: int = 0,
        trigger: str = "ON_SUBMIT",
        conditions: Optional[List[Dict[str, Any]]] = None,
        logic: str = "AND",
        actions: Optional[List[Dict[str, Any]]] = None,
        escalation_enabled: bool = False,
        escalation_hours: Optional[float] = None,
        escalation_actions: Union[str, List[Dict[str, Any]], None] = None,
        **extra: Any
    ) -> AutomationRecord:
        data: Dict[str, Any] = {
            "automation_id": automation_id,
            "template_id": template_id,
            "name": f"Automation {automation_id}",
            "order": order,
            "trigger_conditions": json.dumps({
                "trigger": trigger,
                "conditions": conditions or [],
                "logic": logic
            }),
            "actions": json.dumps({"actions": actions or []}),
            "escalation_enabled": escalation_enabled,
            "escalation_hours": escalation_hours,
        }
        if isinstance(escalation_actions, str):
            data["escalation_actions"] = escalation_actions
        elif escalation_actions is not None:
            data["escalation_actions"] = json.dumps({"actions": escalation_actions})
        data.update(extra)
        return AutomationRecord.model_validate(data)
    return _make
