"""Automation Engine - Rule evaluation and action execution"""
from .condition_evaluator import ConditionEvaluator, RuleMatcher
from .interpolator import VariableInterpolator
from .action_executor import ActionExecutor, ActionContext
from .audit_writer import AuditWriter
from .rule_loader import parse_automation, parse_escalation_actions, parse_email_recipients
from .runner import AutomationRunner
from .escalation import EscalationSweeper

__all__ = [
    "ConditionEvaluator",
    "RuleMatcher",
    "VariableInterpolator",
    "ActionExecutor",
    "ActionContext",
    "AuditWriter",
    "parse_automation",
    "parse_escalation_actions",
    "parse_email_recipients",
    "AutomationRunner",
    "EscalationSweeper",
]
