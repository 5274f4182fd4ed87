"""Automation Runner - Entry point for submission triggers

Runs every active automation of a submission's template, in ascending
`order`, against one snapshot of the submission.
"""
from typing import List, Optional

from ..domain.models import Submission, ActionSpec, AutomationDefinition, AutomationRecord
from ..domain.enums import TriggerKind, RunSource
from ..domain.errors import MalformedRuleError, SubmissionNotFoundError
from ..repositories.submission_repo import SubmissionRepository
from ..repositories.automation_repo import AutomationRepository
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger, correlation_scope
from ..utils.time import utc_now
from .action_executor import ActionExecutor, ActionContext
from .condition_evaluator import RuleMatcher
from .rule_loader import parse_automation

logger = get_logger(__name__)


class AutomationRunner:
    """
    Run automations for a submission event

    One call to trigger() is one unit of work. Automations and their actions
    run strictly in sequence; a failure in one automation never stops the
    automations after it.
    """

    def __init__(
        self,
        submission_repo: Optional[SubmissionRepository] = None,
        automation_repo: Optional[AutomationRepository] = None,
        executor: Optional[ActionExecutor] = None,
        matcher: Optional[RuleMatcher] = None
    ):
        self.submission_repo = submission_repo or SubmissionRepository()
        self.automation_repo = automation_repo or AutomationRepository()
        self.executor = executor or ActionExecutor(submission_repo=self.submission_repo)
        self.matcher = matcher or RuleMatcher()

    def trigger(self, submission_id: str, trigger_kind: TriggerKind) -> None:
        """
        Evaluate and run automations for a submission

        Never raises; every failure is logged.

        Args:
            submission_id: Submission that fired the event
            trigger_kind: ON_SUBMIT or ON_STATUS_CHANGE
        """
        with correlation_scope(generate_correlation_id()) as correlation_id:
            try:
                self._run(submission_id, TriggerKind(trigger_kind), correlation_id)
            except SubmissionNotFoundError as e:
                logger.warning(e.message, extra={"submission_id": submission_id})
            except Exception as e:
                logger.error(
                    f"Automation run failed for submission {submission_id}: {e}",
                    extra={
                        "submission_id": submission_id,
                        "trigger": str(trigger_kind),
                        "error_type": type(e).__name__
                    },
                    exc_info=True
                )

    def _run(self, submission_id: str, trigger_kind: TriggerKind, correlation_id: str) -> None:
        submission = self.submission_repo.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(
                f"Submission {submission_id} not found; no automations run",
                details={"submission_id": submission_id}
            )

        records = self.load_automations(submission.template_id)
        logger.info(
            f"Running {len(records)} automations for submission {submission_id}",
            extra={
                "submission_id": submission_id,
                "template_id": submission.template_id,
                "trigger": trigger_kind.value
            }
        )

        # Every automation in this run sees the submission as it was loaded
        snapshot = submission.model_copy(deep=True)

        for record in records:
            try:
                self._run_automation(record, snapshot, trigger_kind, correlation_id)
            except MalformedRuleError as e:
                logger.error(
                    f"Skipping malformed automation {record.automation_id}: {e.message}",
                    extra={
                        "submission_id": submission_id,
                        "automation_id": record.automation_id,
                        "error_type": type(e).__name__
                    }
                )
            except Exception as e:
                logger.error(
                    f"Automation {record.automation_id} failed: {e}",
                    extra={
                        "submission_id": submission_id,
                        "automation_id": record.automation_id,
                        "error_type": type(e).__name__
                    },
                    exc_info=True
                )

    def load_automations(self, template_id: str) -> List[AutomationRecord]:
        """Active automations of a template, stably sorted by order"""
        records = self.automation_repo.get_active_automations_for_template(template_id)
        return sorted(records, key=lambda r: r.order)

    def _run_automation(
        self,
        record: AutomationRecord,
        snapshot: Submission,
        trigger_kind: TriggerKind,
        correlation_id: str
    ) -> bool:
        """
        Run one automation if its trigger and conditions match

        Returns:
            True if the automation matched and its actions ran
        """
        automation = parse_automation(record)

        if automation.trigger.trigger != trigger_kind:
            return False

        if not self.matcher.matches(automation.trigger.conditions, automation.trigger.logic, snapshot):
            logger.debug(
                f"Automation {automation.automation_id} did not match",
                extra={"submission_id": snapshot.submission_id, "automation_id": automation.automation_id}
            )
            return False

        self.execute_actions(
            automation, automation.actions, snapshot, RunSource.TRIGGER, correlation_id
        )
        self.automation_repo.record_execution(automation.automation_id, utc_now())
        return True

    def execute_actions(
        self,
        automation: AutomationDefinition,
        actions: ActionSpec,
        snapshot: Submission,
        source: RunSource,
        correlation_id: Optional[str] = None
    ) -> int:
        """
        Execute an action chain of an automation in order

        Returns:
            Number of actions that failed
        """
        context = ActionContext(
            submission=snapshot,
            automation=automation,
            source=source,
            correlation_id=correlation_id
        )

        failures = 0
        for action in actions.actions:
            if not self.executor.execute(action, context):
                failures += 1

        logger.info(
            f"Automation {automation.automation_id} ran {len(actions.actions)} actions ({failures} failed)",
            extra={"submission_id": snapshot.submission_id, "automation_id": automation.automation_id}
        )
        return failures
