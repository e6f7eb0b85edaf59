"""
MongoDB access shared by every router.

The client is created from ``DATABASE_URL``; pymongo connects lazily, so
importing this module never touches the network. Routes receive the
database through the ``get_db`` dependency which tests override.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from config import get_settings
from errors import ApiError

logger = logging.getLogger(__name__)

settings = get_settings()

client: Optional[MongoClient] = MongoClient(settings.database_url) if settings.database_url else None
db: Optional[Database] = client[settings.database_name] if client is not None else None


def get_db() -> Database:
    if db is None:
        raise ApiError(500, "Database is not configured")
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document stamped with createdAt/updatedAt and return it with its _id."""
    doc = data.model_dump(exclude_none=True) if isinstance(data, BaseModel) else dict(data)
    now = utcnow()
    doc["createdAt"] = now
    doc["updatedAt"] = now
    doc["_id"] = database[collection_name].insert_one(doc).inserted_id
    return doc


def get_documents(database: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List[tuple]] = None, limit: int = 0) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def aggregate_paginate(collection: Collection, pipeline: List[Dict[str, Any]], page: int, limit: int) -> Dict[str, Any]:
    """
    Run ``pipeline`` once for the total and once for the requested slice.

    The returned page mirrors what the web client already consumes:
    docs, totalDocs, limit, page, totalPages, pagingCounter,
    hasPrevPage, hasNextPage, prevPage, nextPage.
    """
    page = max(page, 1)
    limit = max(limit, 1)

    counted = list(collection.aggregate(pipeline + [{"$count": "totalDocs"}]))
    total = counted[0]["totalDocs"] if counted else 0

    skip = (page - 1) * limit
    docs = list(collection.aggregate(pipeline + [{"$skip": skip}, {"$limit": limit}]))

    total_pages = math.ceil(total / limit) or 1
    has_prev = page > 1
    has_next = page < total_pages
    return {
        "docs": docs,
        "totalDocs": total,
        "limit": limit,
        "page": page,
        "totalPages": total_pages,
        "pagingCounter": skip + 1,
        "hasPrevPage": has_prev,
        "hasNextPage": has_next,
        "prevPage": page - 1 if has_prev else None,
        "nextPage": page + 1 if has_next else None,
    }


def ensure_indexes(database: Database) -> None:
    """Unique indexes backing account lookups and the like/subscription toggles."""
    database["user"].create_index([("username", ASCENDING)], unique=True)
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["video"].create_index([("owner", ASCENDING), ("createdAt", -1)])
    database["like"].create_index(
        [("likedBy", ASCENDING), ("video", ASCENDING)],
        unique=True,
        partialFilterExpression={"video": {"$exists": True}},
    )
    database["like"].create_index(
        [("likedBy", ASCENDING), ("comment", ASCENDING)],
        unique=True,
        partialFilterExpression={"comment": {"$exists": True}},
    )
    database["subscription"].create_index([("subscriber", ASCENDING), ("channel", ASCENDING)], unique=True)
    logger.info("MongoDB indexes ensured on %s", database.name)


# -------------------- Ids & serialisation --------------------

def objid(id_str: Optional[str], name: str = "id") -> ObjectId:
    if not id_str or not ObjectId.is_valid(id_str):
        raise ApiError(400, f"Invalid {name}")
    return ObjectId(id_str)


def to_str_id(doc: Any) -> Any:
    """Make a Mongo document JSON friendly: _id -> id, ObjectId -> str, datetime -> isoformat."""
    if isinstance(doc, list):
        return [to_str_id(item) for item in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if not isinstance(doc, dict):
        return doc
    d = {}
    for k, v in doc.items():
        if k == "_id":
            d["id"] = to_str_id(v)
        else:
            d[k] = to_str_id(v)
    return d


def public_profile(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not user:
        return None
    return {
        "id": str(user["_id"]),
        "username": user.get("username"),
        "avatar": user.get("avatar"),
    }
