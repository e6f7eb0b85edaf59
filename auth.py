import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Depends, Header
from passlib.context import CryptContext
from pymongo.database import Database

from database import get_db
from errors import ApiError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


# Dependency to get current user id from header (MVP)
def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
) -> ObjectId:
    if not x_user_id:
        raise ApiError(401, "Missing X-User-Id header")
    if not ObjectId.is_valid(x_user_id):
        raise ApiError(401, "Invalid user id")
    user_id = ObjectId(x_user_id)
    if not db["user"].find_one({"_id": user_id}, {"_id": 1}):
        raise ApiError(401, "Invalid user id")
    return user_id


def get_optional_user_id(
    x_user_id: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
) -> Optional[ObjectId]:
    if not x_user_id:
        return None
    return get_current_user_id(x_user_id, db)


def require_owner(document: Dict[str, Any], user_id: ObjectId, message: str) -> None:
    """Raise 403 unless ``user_id`` owns ``document``."""
    if document.get("owner") != user_id:
        logger.warning("User %s denied on %s: %s", user_id, document.get("_id"), message)
        raise ApiError(403, message)
