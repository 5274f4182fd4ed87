"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class SubmissionStatus(str, Enum):
    """Injury report lifecycle status (no transition rules are enforced)"""
    NEW = "NEW"
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


# Statuses the escalation sweep still considers
OPEN_SUBMISSION_STATUSES = (SubmissionStatus.NEW, SubmissionStatus.UNDER_REVIEW)


class SubmissionPriority(str, Enum):
    """Priority of an injury report"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TriggerKind(str, Enum):
    """Events that cause automation evaluation"""
    ON_SUBMIT = "ON_SUBMIT"
    ON_STATUS_CHANGE = "ON_STATUS_CHANGE"


class RuleLogic(str, Enum):
    """How a condition list is combined"""
    AND = "AND"
    OR = "OR"


class ConditionOperator(str, Enum):
    """Condition operators"""
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


class ReservedField(str, Enum):
    """Pseudo-fields that address submission header values"""
    STATUS = "_status"
    PRIORITY = "_priority"


class ActionType(str, Enum):
    """Automation action kinds"""
    SEND_EMAIL = "SEND_EMAIL"
    SET_PRIORITY = "SET_PRIORITY"
    ASSIGN_USER = "ASSIGN_USER"
    CREATE_NOTIFICATION = "CREATE_NOTIFICATION"
    SET_STATUS = "SET_STATUS"


class AuditAction(str, Enum):
    """Audit labels written by automations"""
    PRIORITY_SET_BY_AUTOMATION = "PRIORITY_SET_BY_AUTOMATION"
    ASSIGNED_BY_AUTOMATION = "ASSIGNED_BY_AUTOMATION"
    STATUS_SET_BY_AUTOMATION = "STATUS_SET_BY_AUTOMATION"


class NotificationType(str, Enum):
    """In-app notification categories"""
    NEW_SUBMISSION = "NEW_SUBMISSION"
    ASSIGNMENT = "ASSIGNMENT"


class NotificationPriority(str, Enum):
    """In-app notification priority"""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class RunSource(str, Enum):
    """What started an action run"""
    TRIGGER = "TRIGGER"
    ESCALATION = "ESCALATION"
