import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, Query
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id, require_owner
from config import get_settings
from database import aggregate_paginate, create_document, get_db, objid, public_profile, to_str_id, utcnow
from errors import ApiError, api_response
from schemas import Comment, CommentRequest

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/comments", tags=["comments"])


def find_comment_or_404(db: Database, comment_id: ObjectId) -> dict:
    comment = db["comment"].find_one({"_id": comment_id})
    if not comment:
        raise ApiError(404, "Comment not found")
    return comment


def require_content(payload: CommentRequest) -> str:
    content = (payload.content or "").strip()
    if not content:
        raise ApiError(400, "Comment content is required")
    return content


@router.get("/{video_id}")
def get_video_comments(
    video_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_limit_default, ge=1, le=settings.page_limit_max),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "videoId")
    pipeline = [
        {"$match": {"video": vid}},
        {"$sort": {"createdAt": -1}},
        {
            "$lookup": {
                "from": "user",
                "localField": "owner",
                "foreignField": "_id",
                "as": "ownerDetails",
            }
        },
        {"$unwind": "$ownerDetails"},
    ]
    result = aggregate_paginate(db["comment"], pipeline, page, limit)
    docs = []
    for doc in result["docs"]:
        owner = doc.pop("ownerDetails")
        item = to_str_id(doc)
        item["ownerDetails"] = public_profile(owner)
        docs.append(item)
    result["docs"] = docs
    return api_response(200, result, "Comments fetched successfully")


@router.post("/{video_id}")
def add_comment(
    video_id: str,
    payload: CommentRequest,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    vid = objid(video_id, "videoId")
    content = require_content(payload)
    if not db["video"].find_one({"_id": vid}, {"_id": 1}):
        raise ApiError(404, "Video not found")

    comment = create_document(db, "comment", Comment(content=content, video=vid, owner=user_id))
    return api_response(201, to_str_id(comment), "Comment added successfully")


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: str,
    payload: CommentRequest,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    cid = objid(comment_id, "commentId")
    content = require_content(payload)
    comment = find_comment_or_404(db, cid)
    require_owner(comment, user_id, "You are not authorized to update this comment")

    updated = db["comment"].find_one_and_update(
        {"_id": cid},
        {"$set": {"content": content, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(200, to_str_id(updated), "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(
    comment_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    cid = objid(comment_id, "commentId")
    comment = find_comment_or_404(db, cid)
    require_owner(comment, user_id, "You are not authorized to delete this comment")

    db["comment"].delete_one({"_id": cid})
    db["like"].delete_many({"comment": cid})
    logger.info("Comment %s deleted by %s", cid, user_id)
    return api_response(200, {}, "Comment deleted successfully")
