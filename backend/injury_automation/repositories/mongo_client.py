"""MongoDB Client - Connection, collections and indexes"""
import functools
from typing import Any, Callable, Dict, List, Tuple, TypeVar, Union
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..domain.errors import PersistenceError
from ..utils.logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

IndexKeys = Union[str, List[Tuple[str, int]]]

# collection -> [(keys, options)]
INDEXES: Dict[str, List[Tuple[IndexKeys, Dict[str, Any]]]] = {
    "submissions": [
        ("submission_id", {"unique": True}),
        ([("template_id", ASCENDING), ("status", ASCENDING)], {}),
        ("tenant_id", {}),
    ],
    "submission_field_values": [
        ([("submission_id", ASCENDING), ("field.order", ASCENDING)], {}),
    ],
    "automations": [
        ("automation_id", {"unique": True}),
        ([("template_id", ASCENDING), ("active", ASCENDING), ("order", ASCENDING)], {}),
        ([("active", ASCENDING), ("escalation_enabled", ASCENDING)], {}),
    ],
    "submission_audit": [
        ([("submission_id", ASCENDING), ("at", DESCENDING)], {}),
        ("correlation_id", {}),
    ],
    "notifications": [
        ([("recipient_user_id", ASCENDING), ("read", ASCENDING)], {}),
        ([("recipient_user_id", ASCENDING), ("created_at", DESCENDING)], {}),
    ],
    "users": [
        ("user_id", {"unique": True}),
        ([("tenant_id", ASCENDING), ("is_active", ASCENDING)], {}),
    ],
}


@functools.lru_cache(maxsize=None)
def get_client() -> MongoClient:
    """Shared client, created and pinged on first use"""
    logger.info(f"Connecting to MongoDB database {settings.mongo_db}")
    client = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=5000,
        socketTimeoutMS=30000,
        tz_aware=True,
    )
    try:
        client.admin.command("ping")
    except ConnectionFailure as e:
        client.close()
        raise PersistenceError(
            f"MongoDB connection failed: {e}",
            details={"database": settings.mongo_db}
        ) from e
    return client


def get_database() -> Database:
    return get_client()[settings.mongo_db]


def get_collection(name: str) -> Collection:
    return get_database()[name]


def close_connection() -> None:
    """Close the shared client if one was created"""
    if get_client.cache_info().currsize:
        get_client().close()
        get_client.cache_clear()
        logger.info("MongoDB connection closed")


def wrap_persistence_errors(func: F) -> F:
    """Re-raise driver errors as PersistenceError"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PyMongoError as e:
            raise PersistenceError(
                f"{func.__qualname__} failed: {e}",
                details={"operation": func.__qualname__, "error_type": type(e).__name__}
            ) from e
    return wrapper  # type: ignore[return-value]


def create_indexes() -> None:
    """Create every index in INDEXES (idempotent)"""
    db = get_database()
    for collection_name, indexes in INDEXES.items():
        for keys, options in indexes:
            db[collection_name].create_index(keys, **options)
    logger.info(f"Ensured indexes on {len(INDEXES)} collections")
