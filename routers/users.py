import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database

from auth import get_optional_user_id, hash_password, verify_password
from database import create_document, get_db, to_str_id
from errors import ApiError, api_response
from schemas import LoginRequest, RegisterRequest, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def without_secrets(user: dict) -> dict:
    user = dict(user)
    user.pop("passwordHash", None)
    return to_str_id(user)


@router.post("/register")
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    username = payload.username.strip().lower()
    # Uniqueness checks
    if db["user"].find_one({"email": payload.email}):
        raise ApiError(400, "Email already in use")
    if db["user"].find_one({"username": username}):
        raise ApiError(400, "Username already in use")

    user = create_document(db, "user", User(
        username=username,
        email=payload.email,
        passwordHash=hash_password(payload.password),
        avatar=payload.avatar,
        bio=payload.bio,
    ))
    logger.info("Registered user %s", user["_id"])
    return api_response(201, without_secrets(user), "User registered successfully")


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": payload.email})
    if not user or not user.get("passwordHash") or not verify_password(payload.password, user["passwordHash"]):
        raise ApiError(400, "Invalid credentials")
    # MVP: return user info; frontend will store user id and send it as X-User-Id
    return api_response(200, without_secrets(user), "User logged in successfully")


@router.get("/c/{username}")
def get_channel_profile(
    username: str,
    user_id: Optional[ObjectId] = Depends(get_optional_user_id),
    db: Database = Depends(get_db),
):
    channel = db["user"].find_one({"username": username.strip().lower()})
    if not channel:
        raise ApiError(404, "Channel does not exist")

    payload = without_secrets(channel)
    payload["subscribersCount"] = db["subscription"].count_documents({"channel": channel["_id"]})
    payload["channelsSubscribedToCount"] = db["subscription"].count_documents({"subscriber": channel["_id"]})
    payload["isSubscribed"] = bool(
        user_id and db["subscription"].find_one({"channel": channel["_id"], "subscriber": user_id})
    )
    return api_response(200, payload, "User channel fetched successfully")
