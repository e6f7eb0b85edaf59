from typing import Any, Dict

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database

from auth import get_current_user_id
from database import get_db, to_str_id
from errors import api_response

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def channel_stats(db: Database, owner_id: ObjectId) -> Dict[str, Any]:
    total_subscribers = db["subscription"].count_documents({"channel": owner_id})

    video_stats = list(db["video"].aggregate([
        {"$match": {"owner": owner_id}},
        {
            "$lookup": {
                "from": "like",
                "localField": "_id",
                "foreignField": "video",
                "as": "likes",
            }
        },
        {
            "$group": {
                "_id": None,
                "totalVideos": {"$sum": 1},
                "totalViews": {"$sum": "$views"},
                "totalLikes": {"$sum": {"$size": "$likes"}},
            }
        },
    ]))
    # no videos -> no group row
    summary = video_stats[0] if video_stats else {}
    return {
        "totalSubscribers": total_subscribers,
        "totalVideos": summary.get("totalVideos") or 0,
        "totalViews": summary.get("totalViews") or 0,
        "totalLikes": summary.get("totalLikes") or 0,
    }


@router.get("/stats")
def get_channel_stats(
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    return api_response(200, channel_stats(db, user_id), "Channel stats fetched successfully")


@router.get("/videos")
def get_channel_videos(
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    videos = db["video"].find({"owner": user_id}).sort("createdAt", -1)
    return api_response(200, [to_str_id(v) for v in videos], "Channel videos fetched successfully")
