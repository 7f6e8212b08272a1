"""
MongoDB access for the Social API.

A single pymongo client is opened on startup and shared by every request.
Documents are written from the Pydantic models in ``schemas`` and read back as
plain dicts; ``to_public`` turns them into JSON-friendly payloads.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from logger import get_logger

logger = get_logger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(database_url: str, database_name: str) -> Database:
    global client, db
    client = MongoClient(database_url)
    db = client[database_name]
    logger.info("MongoDB client created for database %s", database_name)
    return db


def use_database(database: Database) -> None:
    """Install an already-built database handle instead of connecting."""
    global db
    db = database


def close() -> None:
    global client, db
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    db = None


def get_db() -> Database:
    if db is None:
        raise RuntimeError("Database is not initialized")
    return db


def ensure_indexes() -> None:
    users = get_db()["user"]
    users.create_index([("username", ASCENDING)], unique=True)
    users.create_index([("email", ASCENDING)], unique=True)
    get_db()["post"].create_index([("createdAt", ASCENDING)])
    logger.info("Indexes ensured on user and post collections")


def now() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> ObjectId:
    """Insert a document stamped with createdAt/updatedAt and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    stamp = now()
    data_dict["createdAt"] = stamp
    data_dict["updatedAt"] = stamp
    result = get_db()[collection_name].insert_one(data_dict)
    return result.inserted_id


def get_documents(
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    projection: Optional[dict] = None,
    sort: Optional[list] = None,
) -> List[dict]:
    cursor = get_db()[collection_name].find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return the ObjectId for ``value`` or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _public_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _public_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_public_value(v) for v in value]
    return value


def to_public(doc: Optional[dict]) -> Optional[dict]:
    """Convert a Mongo document to a JSON-serializable dict without secrets."""
    if not doc:
        return doc
    d = {**doc}
    _id = d.pop("_id", None)
    if _id is not None:
        d = {"id": str(_id), **d}
    d.pop("password_hash", None)
    return _public_value(d)

