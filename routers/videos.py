import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id, require_owner
from config import get_settings
from database import aggregate_paginate, create_document, get_db, objid, public_profile, to_str_id, utcnow
from errors import ApiError, MediaUploadError, api_response
from media import MediaStorage, get_media_storage
from schemas import Video

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/videos", tags=["videos"])


def build_video_pipeline(
    query: Optional[str] = None,
    owner_id: Optional[ObjectId] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Stages for the public video listing.

    Search and owner filters are optional, only published videos are
    returned. The search text is matched literally; ``sort_by`` is used
    as the sort key as given.
    """
    pipeline: List[Dict[str, Any]] = []

    if query:
        # Basic case-insensitive partial search using $or
        regex = {"$regex": re.escape(query), "$options": "i"}
        pipeline.append({"$match": {"$or": [{"title": regex}, {"description": regex}]}})

    if owner_id is not None:
        pipeline.append({"$match": {"owner": owner_id}})

    pipeline.append({"$match": {"isPublished": True}})

    if sort_by and sort_type:
        pipeline.append({"$sort": {sort_by: 1 if sort_type == "asc" else -1}})
    else:
        pipeline.append({"$sort": {"createdAt": -1}})

    pipeline.extend([
        {
            "$lookup": {
                "from": "user",
                "localField": "owner",
                "foreignField": "_id",
                "as": "ownerDetails",
            }
        },
        {"$unwind": "$ownerDetails"},
    ])
    return pipeline


def video_with_owner(doc: Dict[str, Any]) -> Dict[str, Any]:
    owner = doc.pop("ownerDetails", None)
    payload = to_str_id(doc)
    payload["ownerDetails"] = public_profile(owner)
    return payload


def find_video_or_404(db: Database, video_id: ObjectId) -> Dict[str, Any]:
    video = db["video"].find_one({"_id": video_id})
    if not video:
        raise ApiError(404, "Video not found")
    return video


@router.get("")
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_limit_default, ge=1, le=settings.page_limit_max),
    query: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortType: Optional[str] = None,
    userId: Optional[str] = None,
    db: Database = Depends(get_db),
):
    owner_id = objid(userId, "userId") if userId is not None else None
    pipeline = build_video_pipeline(query, owner_id, sortBy, sortType)
    result = aggregate_paginate(db["video"], pipeline, page, limit)
    result["docs"] = [video_with_owner(d) for d in result["docs"]]
    return api_response(200, result, "Videos fetched successfully")


@router.post("")
async def publish_video(
    title: str = Form(""),
    description: str = Form(""),
    videoFile: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    if not title.strip() or not description.strip():
        raise ApiError(400, "All fields are required")
    if videoFile is None:
        raise ApiError(400, "Video file is required")
    if thumbnail is None:
        raise ApiError(400, "Thumbnail file is required")

    try:
        stored_video = await storage.upload_video(videoFile)
    except MediaUploadError as e:
        raise ApiError(500, "Video file upload failed") from e
    try:
        stored_thumbnail = await storage.upload_thumbnail(thumbnail)
    except MediaUploadError as e:
        raise ApiError(500, "Thumbnail upload failed") from e

    video = create_document(db, "video", Video(
        title=title.strip(),
        description=description.strip(),
        videoFile=stored_video.url,
        thumbnail=stored_thumbnail.url,
        duration=stored_video.duration,
        owner=user_id,
        isPublished=True,
    ))
    logger.info("Video %s published by %s", video["_id"], user_id)
    return api_response(201, to_str_id(video), "Video uploaded successfully")


@router.get("/{video_id}")
def get_video(video_id: str, db: Database = Depends(get_db)):
    _id = objid(video_id, "videoId")
    video = db["video"].find_one_and_update(
        {"_id": _id},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not video:
        raise ApiError(404, "Video not found")
    return api_response(200, to_str_id(video), "Video fetched successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    _id = objid(video_id, "videoId")
    title = (title or "").strip()
    description = (description or "").strip()
    if not (title or description or thumbnail is not None):
        raise ApiError(400, "At least one field to update is required")

    video = find_video_or_404(db, _id)
    require_owner(video, user_id, "You are not authorized to update this video")

    update_fields: Dict[str, Any] = {}
    if title:
        update_fields["title"] = title
    if description:
        update_fields["description"] = description
    if thumbnail is not None:
        try:
            stored = await storage.upload_thumbnail(thumbnail)
        except MediaUploadError as e:
            raise ApiError(500, "Thumbnail upload failed") from e
        update_fields["thumbnail"] = stored.url
    update_fields["updatedAt"] = utcnow()

    updated = db["video"].find_one_and_update(
        {"_id": _id},
        {"$set": update_fields},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(200, to_str_id(updated), "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    _id = objid(video_id, "videoId")
    video = find_video_or_404(db, _id)
    require_owner(video, user_id, "You are not authorized to delete this video")

    db["video"].delete_one({"_id": _id})
    comment_ids = [c["_id"] for c in db["comment"].find({"video": _id}, {"_id": 1})]
    db["like"].delete_many({"$or": [{"video": _id}, {"comment": {"$in": comment_ids}}]})
    db["comment"].delete_many({"video": _id})
    db["playlist"].update_many({"videos": _id}, {"$pull": {"videos": _id}})
    logger.info("Video %s deleted by %s", _id, user_id)
    return api_response(200, {}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(
    video_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    _id = objid(video_id, "videoId")
    video = find_video_or_404(db, _id)
    require_owner(video, user_id, "You are not authorized to toggle publish status")

    updated = db["video"].find_one_and_update(
        {"_id": _id},
        {"$set": {"isPublished": not video.get("isPublished", True), "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(200, to_str_id(updated), "Publish status toggled successfully")
