"""Action Executor - Runs one automation action with its own failure boundary"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict

from ..domain.models import (
    Submission, AutomationDefinition, AutomationAction,
    SendEmailAction, SetPriorityAction, AssignUserAction, CreateNotificationAction, SetStatusAction
)
from ..domain.enums import ActionType, NotificationType, NotificationPriority, RunSource
from ..domain.errors import ActionExecutionError, DomainError, EvaluationError
from ..repositories.submission_repo import SubmissionRepository
from ..repositories.notification_repo import NotificationRepository
from ..repositories.user_repo import UserRepository
from ..services.email_service import EmailService
from ..utils.time import utc_now
from ..utils.logger import get_logger
from .audit_writer import AuditWriter
from .interpolator import VariableInterpolator
from .rule_loader import parse_email_recipients

logger = get_logger(__name__)

FIELD_REFERENCE_PREFIX = "field:"

DEFAULT_EMAIL_SUBJECT = "New Injury Report"
DEFAULT_EMAIL_BODY = "A new injury report has been submitted."
DEFAULT_NOTIFICATION_TITLE = "Injury Report Notification"
DEFAULT_NOTIFICATION_MESSAGE = "A new injury report requires attention."
ASSIGNMENT_TITLE = "Injury Report Assigned (Automated)"
ASSIGNMENT_MESSAGE = "You have been automatically assigned to review an injury report."


def submission_action_url(submission_id: str) -> str:
    """Dashboard link stored on notifications"""
    return f"/dashboard/injury-reports/{submission_id}"


class ActionContext(BaseModel):
    """
    Everything an action may read

    `submission` is the snapshot taken when the run started; actions never
    see each other's writes through it.
    """
    model_config = ConfigDict(frozen=True)

    submission: Submission
    automation: AutomationDefinition
    source: RunSource = RunSource.TRIGGER
    correlation_id: Optional[str] = None


class ActionExecutor:
    """
    Execute a single automation action

    Each action kind has exactly one handler. Any failure inside a handler is
    logged as an ActionExecutionError and reported through the return value;
    nothing propagates to the caller.
    """

    HANDLERS: Dict[ActionType, str] = {
        ActionType.SEND_EMAIL: "_send_email",
        ActionType.SET_PRIORITY: "_set_priority",
        ActionType.ASSIGN_USER: "_assign_user",
        ActionType.CREATE_NOTIFICATION: "_create_notification",
        ActionType.SET_STATUS: "_set_status",
    }

    def __init__(
        self,
        submission_repo: Optional[SubmissionRepository] = None,
        notification_repo: Optional[NotificationRepository] = None,
        user_repo: Optional[UserRepository] = None,
        email_service: Optional[EmailService] = None,
        audit_writer: Optional[AuditWriter] = None,
        interpolator: Optional[VariableInterpolator] = None
    ):
        self.submission_repo = submission_repo or SubmissionRepository()
        self.notification_repo = notification_repo or NotificationRepository()
        self.user_repo = user_repo or UserRepository()
        self.email_service = email_service or EmailService()
        self.audit_writer = audit_writer or AuditWriter()
        self.interpolator = interpolator or VariableInterpolator()

    def execute(self, action: AutomationAction, context: ActionContext) -> bool:
        """
        Run one action

        Returns:
            True if the action completed, False if it failed (already logged)
        """
        action_type = ActionType(action.type)
        log_extra = {
            "submission_id": context.submission.submission_id,
            "automation_id": context.automation.automation_id,
            "action_type": action_type.value,
            "correlation_id": context.correlation_id,
        }

        try:
            handler = getattr(self, self.HANDLERS[action_type])
            handler(action, context)
        except Exception as e:
            error = ActionExecutionError(
                f"Action {action_type.value} failed: {e}",
                details={
                    "automation_id": context.automation.automation_id,
                    "submission_id": context.submission.submission_id,
                    "cause": e.to_dict() if isinstance(e, DomainError) else str(e),
                }
            )
            logger.error(
                error.message,
                extra={**log_extra, "error_type": type(e).__name__, "error": str(e)},
                exc_info=True
            )
            return False

        logger.info(f"Action {action_type.value} completed", extra=log_extra)
        return True

    # =========================================================================
    # SEND_EMAIL
    # =========================================================================

    def resolve_recipients(self, recipients: List[str], submission: Submission) -> List[str]:
        """
        Expand "field:<fieldId>" references against the submission

        A field value is used only if it is text containing "@"; anything else
        is dropped silently. Literal entries pass through unchanged.
        """
        resolved: List[str] = []
        for recipient in recipients:
            if not recipient:
                continue
            if not recipient.startswith(FIELD_REFERENCE_PREFIX):
                resolved.append(recipient)
                continue

            field_id = recipient[len(FIELD_REFERENCE_PREFIX):]
            field_value = submission.get_field_value(field_id)
            if field_value is None:
                continue
            try:
                value = field_value.read_payload().value
            except EvaluationError:
                continue
            if isinstance(value, str) and "@" in value:
                resolved.append(value.strip())
        return resolved

    def _send_email(self, action: SendEmailAction, context: ActionContext) -> None:
        config = action.config
        record = context.automation.record
        submission = context.submission

        recipients = self.resolve_recipients(
            config.recipients or parse_email_recipients(record),
            submission
        )
        if not recipients:
            logger.info(
                "SEND_EMAIL resolved no recipients",
                extra={"submission_id": submission.submission_id, "automation_id": record.automation_id}
            )
            return

        subject = self.interpolator.interpolate(
            config.subject or record.email_subject or DEFAULT_EMAIL_SUBJECT, submission
        )
        body = self.interpolator.interpolate(
            config.body or record.email_template or DEFAULT_EMAIL_BODY, submission
        )

        for recipient in recipients:
            sent = self.email_service.send_email(recipient, subject, body)
            if not sent:
                logger.warning(
                    "Email was not delivered",
                    extra={
                        "submission_id": submission.submission_id,
                        "automation_id": record.automation_id,
                        "recipient": recipient
                    }
                )

    # =========================================================================
    # SET_PRIORITY / SET_STATUS
    # =========================================================================

    def _set_priority(self, action: SetPriorityAction, context: ActionContext) -> None:
        submission = context.submission
        new_priority = action.config.priority

        self.submission_repo.update_submission(submission.submission_id, {"priority": new_priority})
        self.audit_writer.write_priority_set(
            submission.submission_id,
            submission.priority,
            new_priority,
            automation_id=context.automation.automation_id,
            correlation_id=context.correlation_id
        )

    def _set_status(self, action: SetStatusAction, context: ActionContext) -> None:
        submission = context.submission
        new_status = action.config.status

        self.submission_repo.update_submission(submission.submission_id, {"status": new_status})
        self.audit_writer.write_status_set(
            submission.submission_id,
            submission.status,
            new_status,
            automation_id=context.automation.automation_id,
            correlation_id=context.correlation_id
        )

    # =========================================================================
    # ASSIGN_USER
    # =========================================================================

    def _assign_user(self, action: AssignUserAction, context: ActionContext) -> None:
        submission = context.submission
        user_id = action.config.user_id

        self.submission_repo.update_submission(
            submission.submission_id,
            {"assigned_user_id": user_id, "assigned_at": utc_now()}
        )
        self.audit_writer.write_assigned(
            submission.submission_id,
            submission.assigned_user_id,
            user_id,
            automation_id=context.automation.automation_id,
            correlation_id=context.correlation_id
        )
        self.notification_repo.create_notification(
            tenant_id=submission.tenant_id,
            recipient_user_id=user_id,
            type=NotificationType.ASSIGNMENT,
            title=ASSIGNMENT_TITLE,
            message=ASSIGNMENT_MESSAGE,
            submission_id=submission.submission_id,
            priority=NotificationPriority.NORMAL,
            action_url=submission_action_url(submission.submission_id)
        )

    # =========================================================================
    # CREATE_NOTIFICATION
    # =========================================================================

    def _create_notification(self, action: CreateNotificationAction, context: ActionContext) -> None:
        config = action.config
        submission = context.submission

        title = self.interpolator.interpolate(config.title or DEFAULT_NOTIFICATION_TITLE, submission)
        message = self.interpolator.interpolate(config.message or DEFAULT_NOTIFICATION_MESSAGE, submission)

        # No explicit targets means everyone active in the tenant
        user_ids = list(config.user_ids) or self.user_repo.get_active_user_ids_for_tenant(submission.tenant_id)

        for user_id in user_ids:
            self.notification_repo.create_notification(
                tenant_id=submission.tenant_id,
                recipient_user_id=user_id,
                type=NotificationType.NEW_SUBMISSION,
                title=title,
                message=message,
                submission_id=submission.submission_id,
                priority=config.priority,
                action_url=submission_action_url(submission.submission_id)
            )


_unhandled = set(ActionType) - set(ActionExecutor.HANDLERS)
if _unhandled:
    raise RuntimeError(f"ActionExecutor has no handler for: {sorted(a.value for a in _unhandled)}")
