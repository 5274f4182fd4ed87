"""User Repository - Read-only tenant user lookups"""
from typing import List
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, wrap_persistence_errors


class UserRepository:
    """Repository for tenant users"""

    def __init__(self):
        self._users: Collection = get_collection("users")

    @wrap_persistence_errors
    def get_active_user_ids_for_tenant(self, tenant_id: str) -> List[str]:
        """IDs of all active users of a tenant"""
        cursor = self._users.find(
            {"tenant_id": tenant_id, "is_active": True},
            {"user_id": 1, "_id": 0}
        ).sort("user_id", ASCENDING)
        return [doc["user_id"] for doc in cursor]
