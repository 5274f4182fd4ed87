"""Domain Models - Pydantic schemas for all entities"""
import json
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator
)

from .enums import (
    SubmissionStatus, SubmissionPriority, TriggerKind, RuleLogic, ConditionOperator,
    ReservedField, AuditAction, NotificationType, NotificationPriority
)
from .errors import EvaluationError


# Stored rule documents arrive either as JSON text or as an already-decoded mapping
StoredDocument = Union[str, Dict[str, Any], None]


# ============================================================================
# Submission & Field Values
# ============================================================================

class FieldDescriptor(BaseModel):
    """Template field that owns a submitted value"""
    model_config = ConfigDict(extra="ignore")

    label: str = Field(..., description="Display label")
    type: str = Field(default="TEXT", description="Field type")
    order: int = Field(default=0, description="Display order")


class FieldPayload(BaseModel):
    """Decoded value document of a submitted field"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    value: Any = None
    display_value: Any = Field(None, alias="displayValue")

    @property
    def rendered(self) -> Any:
        """Display value when it is set, the raw value otherwise"""
        return self.display_value if self.display_value else self.value


class FieldValue(BaseModel):
    """One submitted answer"""
    model_config = ConfigDict(extra="ignore")

    field_id: str = Field(..., description="Template field ID")
    value: StoredDocument = Field(None, description="Stored {value, displayValue} document")
    field: FieldDescriptor

    def read_payload(self) -> FieldPayload:
        """
        Decode the stored value document

        Raises:
            EvaluationError: If the document is not valid JSON or not an object
        """
        raw = self.value
        try:
            if isinstance(raw, str):
                raw = json.loads(raw)
            if not isinstance(raw, dict):
                raise ValueError(f"expected an object, got {type(raw).__name__}")
            return FieldPayload.model_validate(raw)
        except (ValueError, ValidationError) as e:
            raise EvaluationError(
                f"Unreadable value for field {self.field_id}",
                details={"field_id": self.field_id, "reason": str(e)}
            )


class Submission(BaseModel):
    """A filled-in injury report"""
    model_config = ConfigDict(extra="ignore")

    submission_id: str = Field(..., description="Submission ID")
    template_id: str = Field(..., description="Form template ID")
    tenant_id: str = Field(..., description="Owning club/tenant ID")
    status: SubmissionStatus = Field(default=SubmissionStatus.NEW)
    priority: Optional[SubmissionPriority] = None
    assigned_user_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    submitted_at: datetime
    field_values: List[FieldValue] = Field(default_factory=list)

    def get_field_value(self, field_id: str) -> Optional[FieldValue]:
        """Find the submitted value for a template field"""
        for field_value in self.field_values:
            if field_value.field_id == field_id:
                return field_value
        return None


# ============================================================================
# Conditions
# ============================================================================

class UserFieldRef(BaseModel):
    """Reference to a real template field"""
    model_config = ConfigDict(frozen=True)

    field_id: str


FieldRef = Union[ReservedField, UserFieldRef]


def resolve_field_ref(field: str) -> FieldRef:
    """Map a condition's field string to a reserved pseudo-field or a user field"""
    try:
        return ReservedField(field)
    except ValueError:
        return UserFieldRef(field_id=field)


class Condition(BaseModel):
    """Single comparison inside a trigger rule"""
    model_config = ConfigDict(extra="ignore")

    field: str = Field(..., min_length=1, description="_status, _priority or a field ID")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: Any = Field(None, description="Literal to compare against")

    _ref: FieldRef = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._ref = resolve_field_ref(self.field)

    @property
    def ref(self) -> FieldRef:
        return self._ref


class TriggerSpec(BaseModel):
    """Stored trigger document: {trigger, conditions[], logic}"""
    model_config = ConfigDict(extra="ignore")

    trigger: TriggerKind
    conditions: List[Condition] = Field(default_factory=list)
    logic: RuleLogic = RuleLogic.AND

    @field_validator("conditions", mode="before")
    @classmethod
    def default_conditions(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("logic", mode="before")
    @classmethod
    def normalize_logic(cls, v: Any) -> Any:
        if v is None:
            return RuleLogic.AND
        if isinstance(v, str):
            return v.upper()
        return v


# ============================================================================
# Actions (closed union, discriminated on "type")
# ============================================================================

class SendEmailConfig(BaseModel):
    """Falls back to the automation's stored email fields when unset"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    recipients: Optional[List[str]] = None
    subject: Optional[str] = None
    body: Optional[str] = Field(None, validation_alias=AliasChoices("body", "template"))


class SetPriorityConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    priority: SubmissionPriority


class AssignUserConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)


class CreateNotificationConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Optional[str] = None
    message: Optional[str] = None
    user_ids: List[str] = Field(default_factory=list, alias="userIds")
    priority: NotificationPriority = NotificationPriority.NORMAL

    @field_validator("user_ids", mode="before")
    @classmethod
    def default_user_ids(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: Any) -> Any:
        return NotificationPriority.NORMAL if v in (None, "") else v


class SetStatusConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: SubmissionStatus


class SendEmailAction(BaseModel):
    type: Literal["SEND_EMAIL"]
    config: SendEmailConfig = Field(default_factory=SendEmailConfig)


class SetPriorityAction(BaseModel):
    type: Literal["SET_PRIORITY"]
    config: SetPriorityConfig


class AssignUserAction(BaseModel):
    type: Literal["ASSIGN_USER"]
    config: AssignUserConfig


class CreateNotificationAction(BaseModel):
    type: Literal["CREATE_NOTIFICATION"]
    config: CreateNotificationConfig = Field(default_factory=CreateNotificationConfig)


class SetStatusAction(BaseModel):
    type: Literal["SET_STATUS"]
    config: SetStatusConfig


AutomationAction = Annotated[
    Union[
        SendEmailAction,
        SetPriorityAction,
        AssignUserAction,
        CreateNotificationAction,
        SetStatusAction,
    ],
    Field(discriminator="type"),
]


class ActionSpec(BaseModel):
    """Stored action document: {actions: [{type, config}]}"""
    model_config = ConfigDict(extra="ignore")

    actions: List[AutomationAction] = Field(default_factory=list)

    @field_validator("actions", mode="before")
    @classmethod
    def default_actions(cls, v: Any) -> Any:
        return [] if v is None else v


# ============================================================================
# Automations
# ============================================================================

class AutomationRecord(BaseModel):
    """Automation as stored (rule documents not yet validated)"""
    model_config = ConfigDict(extra="ignore")

    automation_id: str
    template_id: str
    name: str = ""
    description: Optional[str] = None
    active: bool = True
    order: int = 0
    trigger_conditions: StoredDocument = None
    actions: StoredDocument = None
    email_recipients: Union[str, List[str], None] = None
    email_subject: Optional[str] = None
    email_template: Optional[str] = None
    escalation_enabled: bool = False
    escalation_hours: Optional[float] = None
    escalation_actions: StoredDocument = None
    execution_count: int = 0
    last_executed_at: Optional[datetime] = None


class AutomationDefinition(BaseModel):
    """Automation with validated trigger and action documents"""
    model_config = ConfigDict(extra="forbid")

    record: AutomationRecord
    trigger: TriggerSpec
    actions: ActionSpec

    @property
    def automation_id(self) -> str:
        return self.record.automation_id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def order(self) -> int:
        return self.record.order


# ============================================================================
# Audit & Notifications
# ============================================================================

class AuditRecord(BaseModel):
    """Append-only submission audit entry"""
    model_config = ConfigDict(extra="ignore")

    audit_id: str
    submission_id: str
    action: AuditAction
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    at: datetime
    automation_id: Optional[str] = None
    correlation_id: Optional[str] = None


class Notification(BaseModel):
    """In-app notification for the notification bell"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    tenant_id: str
    recipient_user_id: str
    submission_id: Optional[str] = None
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    read: bool = False
    action_url: Optional[str] = None
    created_at: datetime


class EscalationSweepResult(BaseModel):
    """Counters reported by one escalation sweep"""
    automations_checked: int = 0
    submissions_checked: int = 0
    escalations_fired: int = 0
    failures: int = 0
