from fastapi import HTTPException
from pymongo.database import Database

from adapter.image.pillow import PillowImageProcessor
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository
from port.image_processor import ImageProcessor
from port.user_repository import UserRepository

_indexes_ready = False


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def ensure_user_indexes(db: Database) -> bool:
    """Create the users indexes once per process. Returns True once they exist.

    Called at startup and again by get_user_repo until it succeeds, since
    MongoDB may only become reachable after startup.
    """
    global _indexes_ready
    if not _indexes_ready:
        _indexes_ready = MongoUserRepository(db).ensure_indexes()
    return _indexes_ready


def get_user_repo() -> UserRepository:
    db = _get_db()
    ensure_user_indexes(db)
    return MongoUserRepository(db)


def get_image_processor() -> ImageProcessor:
    return PillowImageProcessor()
