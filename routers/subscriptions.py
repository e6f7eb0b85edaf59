import logging
from typing import Any, Dict, List

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import get_current_user_id
from database import create_document, get_db, objid, public_profile, to_str_id
from errors import ApiError, api_response
from schemas import Subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def subscriptions_with_profiles(db: Database, match: Dict[str, Any], join_field: str) -> List[Dict[str, Any]]:
    """Subscriptions matching ``match`` with ``join_field`` resolved to a public profile."""
    pipeline = [
        {"$match": match},
        {"$sort": {"createdAt": -1}},
        {
            "$lookup": {
                "from": "user",
                "localField": join_field,
                "foreignField": "_id",
                "as": join_field,
            }
        },
        {"$unwind": f"${join_field}"},
    ]
    results = []
    for doc in db["subscription"].aggregate(pipeline):
        profile = public_profile(doc.pop(join_field))
        item = to_str_id(doc)
        item[join_field] = profile
        results.append(item)
    return results


def toggle_subscribed(db: Database, subscriber: ObjectId, channel: ObjectId) -> bool:
    """Delete the subscriber->channel edge if present, else create it. Returns the new state."""
    key = {"subscriber": subscriber, "channel": channel}
    if db["subscription"].find_one_and_delete(key):
        return False
    try:
        create_document(db, "subscription", Subscription(**key))
    except DuplicateKeyError:
        logger.info("Concurrent subscription of %s to %s already recorded", subscriber, channel)
    return True


@router.post("/c/{channel_id}")
def toggle_subscription(
    channel_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    channel = objid(channel_id, "channelId")
    if channel == user_id:
        raise ApiError(400, "Cannot subscribe to yourself")
    if not db["user"].find_one({"_id": channel}, {"_id": 1}):
        raise ApiError(404, "Channel not found")

    if toggle_subscribed(db, user_id, channel):
        return api_response(200, {"subscribed": True}, "Subscribed successfully")
    return api_response(200, {"subscribed": False}, "Unsubscribed successfully")


# subscriber list of a channel
@router.get("/c/{channel_id}")
def get_user_channel_subscribers(channel_id: str, db: Database = Depends(get_db)):
    channel = objid(channel_id, "channelId")
    subscribers = subscriptions_with_profiles(db, {"channel": channel}, "subscriber")
    return api_response(200, subscribers, "Subscribers fetched successfully")


# channels a user has subscribed to
@router.get("/u/{subscriber_id}")
def get_subscribed_channels(subscriber_id: str, db: Database = Depends(get_db)):
    subscriber = objid(subscriber_id, "subscriberId")
    channels = subscriptions_with_profiles(db, {"subscriber": subscriber}, "channel")
    return api_response(200, channels, "Subscribed channels fetched successfully")
