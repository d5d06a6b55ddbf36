"""
Database helpers

One MongoClient per process, handed to the routes through the get_db
dependency. Collection names are the lowercased schema names in schemas.py.
"""

from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

import config
from errors import ValidationError

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(config.DATABASE_URL)
    return _client


def get_db() -> Database:
    return get_client()[config.DATABASE_NAME]


def ensure_indexes(db) -> None:
    db["user"].create_index("email", unique=True)
    db["cart"].create_index("user_id", unique=True)
    db["payment"].create_index("order_id", unique=True)
    db["payment"].create_index([("user_id", ASCENDING), ("payment_id", ASCENDING)])
    db["booking"].create_index("user_id")
    db["property"].create_index([("coordinates.lat", ASCENDING), ("coordinates.lng", ASCENDING)])


def _convert(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _convert(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(v) for v in value]
    return value


def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    return _convert(doc)


def parse_object_id(value: str, label: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label} id")
