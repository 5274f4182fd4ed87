"""Notification Repository - Data access for in-app notifications"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection, wrap_persistence_errors
from ..domain.models import Notification
from ..domain.enums import NotificationType, NotificationPriority
from ..utils.logger import get_logger
from ..utils.time import utc_now
from ..utils.idgen import generate_notification_id

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for in-app notification operations"""

    COLLECTION_NAME = "notifications"

    def __init__(self):
        self._collection: Collection = get_collection(self.COLLECTION_NAME)

    @wrap_persistence_errors
    def create_notification(
        self,
        tenant_id: str,
        recipient_user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        submission_id: Optional[str] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        action_url: Optional[str] = None
    ) -> Notification:
        """Create a new unread in-app notification"""
        notification = Notification(
            notification_id=generate_notification_id(),
            tenant_id=tenant_id,
            recipient_user_id=recipient_user_id,
            submission_id=submission_id,
            type=type,
            title=title,
            message=message,
            priority=priority,
            read=False,
            action_url=action_url,
            created_at=utc_now()
        )

        doc = notification.model_dump(mode="json")
        doc["created_at"] = notification.created_at
        doc["_id"] = notification.notification_id

        self._collection.insert_one(doc)

        logger.info(
            f"Created notification for user {recipient_user_id}",
            extra={
                "notification_id": notification.notification_id,
                "submission_id": submission_id,
                "tenant_id": tenant_id
            }
        )
        return notification
