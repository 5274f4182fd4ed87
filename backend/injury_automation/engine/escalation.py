"""Escalation Sweeper - Time-based re-evaluation of open submissions"""
from datetime import datetime
from typing import List, Optional

from ..config.settings import Settings, settings as default_settings
from ..domain.models import Submission, ActionSpec, AutomationDefinition, AutomationRecord, EscalationSweepResult
from ..domain.enums import RunSource, OPEN_SUBMISSION_STATUSES
from ..domain.errors import MalformedRuleError
from ..repositories.submission_repo import SubmissionRepository
from ..repositories.automation_repo import AutomationRepository
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger, correlation_scope
from ..utils.time import utc_now, hours_since
from .condition_evaluator import RuleMatcher
from .rule_loader import parse_automation, parse_escalation_actions
from .runner import AutomationRunner

logger = get_logger(__name__)


class EscalationSweeper:
    """
    Fire escalation actions for submissions left open too long

    A submission qualifies when it is NEW or UNDER_REVIEW, its age reaches the
    automation's escalation_hours and the automation's ordinary trigger
    conditions still match. Nothing records that an escalation already fired,
    so a qualifying submission escalates again on every sweep.
    """

    def __init__(
        self,
        submission_repo: Optional[SubmissionRepository] = None,
        automation_repo: Optional[AutomationRepository] = None,
        runner: Optional[AutomationRunner] = None,
        matcher: Optional[RuleMatcher] = None,
        config: Optional[Settings] = None
    ):
        self.submission_repo = submission_repo or SubmissionRepository()
        self.automation_repo = automation_repo or AutomationRepository()
        self.runner = runner or AutomationRunner(
            submission_repo=self.submission_repo,
            automation_repo=self.automation_repo
        )
        self.matcher = matcher or RuleMatcher()
        self.config = config or default_settings

    def run_escalation_sweep(self, now: Optional[datetime] = None) -> EscalationSweepResult:
        """
        Run one sweep over every escalation-enabled automation

        Never raises; failures are counted and logged.
        """
        result = EscalationSweepResult()
        with correlation_scope(generate_correlation_id()) as correlation_id:
            try:
                records = self.automation_repo.get_escalation_automations()
            except Exception as e:
                logger.error(
                    f"Could not load escalation automations: {e}",
                    extra={"error_type": type(e).__name__},
                    exc_info=True
                )
                result.failures += 1
                return result

            self._sweep(records, now or utc_now(), correlation_id, result)
            logger.info(
                f"Escalation sweep finished: {result.escalations_fired} fired, {result.failures} failures",
                extra=result.model_dump()
            )
        return result

    def _sweep(
        self,
        records: List[AutomationRecord],
        now: datetime,
        correlation_id: str,
        result: EscalationSweepResult
    ) -> None:
        for record in records:
            result.automations_checked += 1
            try:
                automation = parse_automation(record)
                escalation_actions = parse_escalation_actions(record)
                self._sweep_automation(automation, escalation_actions, now, correlation_id, result)
            except MalformedRuleError as e:
                result.failures += 1
                logger.error(
                    f"Skipping malformed automation {record.automation_id}: {e.message}",
                    extra={"automation_id": record.automation_id, "error_type": type(e).__name__}
                )
            except Exception as e:
                result.failures += 1
                logger.error(
                    f"Escalation failed for automation {record.automation_id}: {e}",
                    extra={
                        "automation_id": record.automation_id,
                        "template_id": record.template_id,
                        "error_type": type(e).__name__
                    },
                    exc_info=True
                )

    def threshold_hours(self, automation: AutomationDefinition) -> float:
        """escalation_hours, or the configured default when unset or 0"""
        hours = automation.record.escalation_hours
        return hours if hours else float(self.config.default_escalation_hours)

    def is_due(self, automation: AutomationDefinition, submission: Submission, now: datetime) -> bool:
        """True once the submission has been open for at least the threshold"""
        if submission.status not in OPEN_SUBMISSION_STATUSES:
            return False
        return hours_since(submission.submitted_at, now) >= self.threshold_hours(automation)

    def _sweep_automation(
        self,
        automation: AutomationDefinition,
        escalation_actions: ActionSpec,
        now: datetime,
        correlation_id: str,
        result: EscalationSweepResult
    ) -> None:
        submissions = self.submission_repo.list_open_submissions_for_template(
            automation.record.template_id,
            OPEN_SUBMISSION_STATUSES
        )

        for submission in submissions:
            result.submissions_checked += 1
            try:
                if not self.is_due(automation, submission, now):
                    continue
                if not self.matcher.matches(automation.trigger.conditions, automation.trigger.logic, submission):
                    continue

                logger.info(
                    f"Escalating submission {submission.submission_id}",
                    extra={"submission_id": submission.submission_id, "automation_id": automation.automation_id}
                )
                result.failures += self.runner.execute_actions(
                    automation, escalation_actions, submission, RunSource.ESCALATION, correlation_id
                )
                result.escalations_fired += 1
            except Exception as e:
                result.failures += 1
                logger.error(
                    f"Escalation failed for submission {submission.submission_id}: {e}",
                    extra={
                        "submission_id": submission.submission_id,
                        "automation_id": automation.automation_id,
                        "error_type": type(e).__name__
                    },
                    exc_info=True
                )
