"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a log/report friendly dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"


class SubmissionNotFoundError(NotFoundError):
    """Submission not found"""
    error_code = "SUBMISSION_NOT_FOUND"


# Automation Errors
class AutomationError(DomainError):
    """Automation engine error"""
    error_code = "AUTOMATION_ERROR"


class MalformedRuleError(AutomationError):
    """Stored trigger/action document could not be parsed or validated"""
    error_code = "MALFORMED_RULE"


class ActionExecutionError(AutomationError):
    """A single automation action failed"""
    error_code = "ACTION_EXECUTION_ERROR"


class EvaluationError(AutomationError):
    """A referenced field value could not be read"""
    error_code = "EVALUATION_ERROR"


# Persistence Errors
class PersistenceError(DomainError):
    """Database read/write failed"""
    error_code = "PERSISTENCE_ERROR"


# External Service Errors
class ExternalServiceError(DomainError):
    """External service failure"""
    error_code = "EXTERNAL_SERVICE_ERROR"


class EmailSendError(ExternalServiceError):
    """Email sending failed"""
    error_code = "EMAIL_SEND_ERROR"
