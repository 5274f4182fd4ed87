"""Condition Evaluator - Safe evaluation of automation trigger conditions"""
import math
from typing import Any, List, Optional

from ..domain.models import Condition, Submission, FieldRef
from ..domain.enums import ConditionOperator, ReservedField, RuleLogic
from ..domain.errors import EvaluationError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConditionEvaluator:
    """
    Evaluate a single condition against a submission

    Uses a small fixed operator set - no eval() or exec(). Evaluation is pure:
    the submission is only read.
    """

    def evaluate(self, condition: Condition, submission: Submission) -> bool:
        """
        Evaluate one condition

        Args:
            condition: Parsed condition (field already resolved to a FieldRef)
            submission: Submission snapshot with its field values

        Returns:
            True if the condition holds
        """
        actual = self.resolve_value(condition.ref, submission)
        return self._compare(actual, condition.operator, condition.value)

    def resolve_value(self, ref: FieldRef, submission: Submission) -> Any:
        """Read the value a condition refers to; absent or unreadable values are None"""
        if ref == ReservedField.STATUS:
            return submission.status.value
        if ref == ReservedField.PRIORITY:
            return submission.priority.value if submission.priority else None

        field_value = submission.get_field_value(ref.field_id)
        if field_value is None:
            return None

        try:
            return field_value.read_payload().value
        except EvaluationError as e:
            logger.debug(
                f"Treating unreadable field value as absent: {e.message}",
                extra={"submission_id": submission.submission_id}
            )
            return None

    def _compare(self, actual: Any, operator: ConditionOperator, expected: Any) -> bool:
        """Compare values using operator"""

        if operator == ConditionOperator.EQUALS:
            return loose_equals(actual, expected)

        elif operator == ConditionOperator.NOT_EQUALS:
            return not loose_equals(actual, expected)

        elif operator == ConditionOperator.CONTAINS:
            if actual is None:
                return False
            return to_text(expected).lower() in to_text(actual).lower()

        elif operator == ConditionOperator.GREATER_THAN:
            return self._compare_numeric(actual, expected, lambda a, b: a > b)

        elif operator == ConditionOperator.LESS_THAN:
            return self._compare_numeric(actual, expected, lambda a, b: a < b)

        elif operator == ConditionOperator.IS_EMPTY:
            return is_empty(actual)

        elif operator == ConditionOperator.IS_NOT_EMPTY:
            return not is_empty(actual)

        return False

    def _compare_numeric(self, actual: Any, expected: Any, comparator) -> bool:
        """Numeric comparison; False when either side is not a number"""
        a = to_number(actual)
        b = to_number(expected)
        if a is None or b is None:
            return False
        return comparator(a, b)


class RuleMatcher:
    """
    Combine an ordered condition list into one verdict

    An empty list always matches. AND stops at the first false condition,
    OR at the first true one; conditions are visited in list order.
    """

    def __init__(self, evaluator: Optional[ConditionEvaluator] = None):
        self.evaluator = evaluator or ConditionEvaluator()

    def matches(
        self,
        conditions: List[Condition],
        logic: RuleLogic,
        submission: Submission
    ) -> bool:
        if not conditions:
            return True

        if logic == RuleLogic.OR:
            return any(self.evaluator.evaluate(c, submission) for c in conditions)
        return all(self.evaluator.evaluate(c, submission) for c in conditions)


# ============================================================================
# Value coercion helpers
# ============================================================================

def is_empty(value: Any) -> bool:
    """Absent, null or empty string"""
    return value is None or value == ""


def to_text(value: Any) -> str:
    """String form used by contains and list comparisons"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(item) for item in value)
    return str(value)


def to_number(value: Any) -> Optional[float]:
    """Coerce to a finite-or-infinite float; None when not numeric"""
    if value is None or isinstance(value, (list, tuple, dict)):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def loose_equals(actual: Any, expected: Any) -> bool:
    """
    Equality that tolerates type differences between stored answers and rule literals

    - None only equals None
    - a number equals a string holding the same number ("3" == 3)
    - booleans compare as 1/0 against numbers
    - lists compare through their comma-joined text against strings
    """
    if actual is None or expected is None:
        return actual is None and expected is None

    if isinstance(actual, str) and isinstance(expected, str):
        return actual == expected

    if isinstance(actual, (int, float)) or isinstance(expected, (int, float)):
        a = to_number(actual)
        b = to_number(expected)
        return a is not None and b is not None and a == b

    if isinstance(actual, (list, tuple)) and isinstance(expected, str):
        return to_text(actual) == expected
    if isinstance(expected, (list, tuple)) and isinstance(actual, str):
        return to_text(expected) == actual

    return actual == expected
