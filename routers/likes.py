import logging
from typing import Any, Dict

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import get_current_user_id
from database import create_document, get_db, objid, to_str_id
from errors import ApiError, api_response
from schemas import Like

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/likes", tags=["likes"])


def toggle_like(db: Database, target: Dict[str, Any], user_id: ObjectId) -> bool:
    """
    Remove the user's like on ``target`` if present, else add it.

    Returns the resulting state. The delete is a single atomic call and the
    insert is guarded by the unique (likedBy, target) index, so a concurrent
    toggle that already inserted leaves the like in place.
    """
    key = {**target, "likedBy": user_id}
    if db["like"].find_one_and_delete(key):
        return False
    try:
        create_document(db, "like", Like(**key))
    except DuplicateKeyError:
        logger.info("Concurrent like on %s by %s already recorded", target, user_id)
    return True


def like_message(is_liked: bool) -> str:
    return "Like added" if is_liked else "Like removed"


@router.post("/toggle/v/{video_id}")
def toggle_video_like(
    video_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "videoId")
    if not db["video"].find_one({"_id": vid}, {"_id": 1}):
        raise ApiError(404, "Video not found")
    is_liked = toggle_like(db, {"video": vid}, user_id)
    return api_response(200, {"isLiked": is_liked}, like_message(is_liked))


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(
    comment_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    cid = objid(comment_id, "commentId")
    if not db["comment"].find_one({"_id": cid}, {"_id": 1}):
        raise ApiError(404, "Comment not found")
    is_liked = toggle_like(db, {"comment": cid}, user_id)
    return api_response(200, {"isLiked": is_liked}, like_message(is_liked))


@router.get("/videos")
def get_liked_videos(
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    pipeline = [
        {"$match": {"likedBy": user_id, "video": {"$exists": True}}},
        {"$sort": {"createdAt": -1}},
        {
            "$lookup": {
                "from": "video",
                "localField": "video",
                "foreignField": "_id",
                "as": "video",
            }
        },
        {"$unwind": "$video"},
    ]
    liked = [to_str_id(doc) for doc in db["like"].aggregate(pipeline)]
    return api_response(200, liked, "Liked videos fetched successfully")
