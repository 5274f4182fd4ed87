"""Variable Interpolator - {submission.*} / {field.*} placeholders in text templates"""
from typing import Dict, Optional

from ..config.settings import settings
from ..domain.models import Submission
from ..domain.errors import EvaluationError
from ..utils.time import format_locale
from ..utils.logger import get_logger
from .condition_evaluator import to_text

logger = get_logger(__name__)

NOT_SET = "Not Set"


class VariableInterpolator:
    """
    Substitute submission and field placeholders

    Supported placeholders:
        {submission.id}, {submission.status}, {submission.priority},
        {submission.submittedAt}, {field.<fieldId>}, {field.<fieldLabel>}

    Anything else is left untouched. Never raises.
    """

    def __init__(self, timezone_name: Optional[str] = None):
        self.timezone_name = timezone_name or settings.display_timezone

    def build_variables(self, submission: Submission) -> Dict[str, str]:
        """Placeholder -> replacement text for one submission"""
        variables = {
            "{submission.id}": submission.submission_id,
            "{submission.status}": submission.status.value,
            "{submission.priority}": submission.priority.value if submission.priority else NOT_SET,
            "{submission.submittedAt}": format_locale(submission.submitted_at, self.timezone_name),
        }

        for field_value in submission.field_values:
            try:
                rendered = to_text(field_value.read_payload().rendered)
            except EvaluationError as e:
                logger.debug(
                    f"Skipping placeholder for unreadable field: {e.message}",
                    extra={"submission_id": submission.submission_id}
                )
                continue
            variables[f"{{field.{field_value.field_id}}}"] = rendered
            variables[f"{{field.{field_value.field.label}}}"] = rendered

        return variables

    def interpolate(self, template: Optional[str], submission: Submission) -> str:
        """Replace every known placeholder in the template"""
        if not template:
            return ""

        try:
            variables = self.build_variables(submission)
        except Exception as e:
            logger.warning(
                f"Could not build template variables: {e}",
                extra={"submission_id": submission.submission_id}
            )
            return template

        result = template
        for placeholder, replacement in variables.items():
            result = result.replace(placeholder, replacement)
        return result
