"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes, close_connection
from .submission_repo import SubmissionRepository
from .automation_repo import AutomationRepository
from .audit_repo import AuditRepository
from .notification_repo import NotificationRepository
from .user_repo import UserRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "close_connection",
    "SubmissionRepository",
    "AutomationRepository",
    "AuditRepository",
    "NotificationRepository",
    "UserRepository",
]
