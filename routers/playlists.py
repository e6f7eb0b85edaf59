import logging
from typing import Any, Dict

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user_id, require_owner
from database import create_document, get_db, objid, to_str_id, utcnow
from errors import ApiError, api_response
from schemas import Playlist, PlaylistCreate, PlaylistUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playlists", tags=["playlists"])


def find_playlist_or_404(db: Database, playlist_id: ObjectId) -> Dict[str, Any]:
    playlist = db["playlist"].find_one({"_id": playlist_id})
    if not playlist:
        raise ApiError(404, "Playlist not found")
    return playlist


def resolve_videos(db: Database, playlist: Dict[str, Any]) -> Dict[str, Any]:
    """Replace video ids with the video documents, keeping playlist order."""
    ids = playlist.get("videos", [])
    by_id = {v["_id"]: v for v in db["video"].find({"_id": {"$in": ids}})}
    playlist["videos"] = [by_id[i] for i in ids if i in by_id]
    return playlist


@router.post("")
def create_playlist(
    payload: PlaylistCreate,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    if not payload.name or not payload.name.strip():
        raise ApiError(400, "Name is required for the playlist")

    playlist = create_document(db, "playlist", Playlist(
        name=payload.name.strip(),
        description=payload.description or "",
        owner=user_id,
        videos=[],
    ))
    logger.info("Playlist %s created by %s", playlist["_id"], user_id)
    return api_response(201, to_str_id(playlist), "Playlist created successfully")


@router.get("/user/{user_id}")
def get_user_playlists(user_id: str, db: Database = Depends(get_db)):
    owner = objid(user_id, "userId")
    playlists = db["playlist"].find({"owner": owner}).sort("createdAt", -1)
    return api_response(200, [to_str_id(p) for p in playlists], "User playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist_by_id(playlist_id: str, db: Database = Depends(get_db)):
    playlist = find_playlist_or_404(db, objid(playlist_id, "playlistId"))
    return api_response(200, to_str_id(resolve_videos(db, playlist)), "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    if not ObjectId.is_valid(playlist_id) or not ObjectId.is_valid(video_id):
        raise ApiError(400, "Invalid playlistId or videoId")
    pid, vid = ObjectId(playlist_id), ObjectId(video_id)

    playlist = find_playlist_or_404(db, pid)
    require_owner(playlist, user_id, "You are not authorized to add videos to this playlist")

    if not db["video"].find_one({"_id": vid}, {"_id": 1}):
        raise ApiError(404, "Video not found")
    if vid in playlist.get("videos", []):
        raise ApiError(400, "Video already exists in the playlist")

    updated = db["playlist"].find_one_and_update(
        {"_id": pid},
        {"$addToSet": {"videos": vid}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(200, to_str_id(updated), "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    if not ObjectId.is_valid(playlist_id) or not ObjectId.is_valid(video_id):
        raise ApiError(400, "Invalid playlistId or videoId")
    pid, vid = ObjectId(playlist_id), ObjectId(video_id)

    playlist = find_playlist_or_404(db, pid)
    require_owner(playlist, user_id, "You are not authorized to remove videos from this playlist")

    updated = db["playlist"].find_one_and_update(
        {"_id": pid},
        {"$pull": {"videos": vid}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(200, to_str_id(updated), "Video removed from playlist successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    pid = objid(playlist_id, "playlistId")
    playlist = find_playlist_or_404(db, pid)
    require_owner(playlist, user_id, "You are not authorized to delete this playlist")

    db["playlist"].delete_one({"_id": pid})
    logger.info("Playlist %s deleted by %s", pid, user_id)
    return api_response(200, {}, "Playlist deleted successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistUpdate,
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    pid = objid(playlist_id, "playlistId")
    if not payload.name and not payload.description:
        raise ApiError(400, "Name or description is required to update")

    playlist = find_playlist_or_404(db, pid)
    require_owner(playlist, user_id, "You are not authorized to update this playlist")

    update_fields: Dict[str, Any] = {"updatedAt": utcnow()}
    if payload.name:
        update_fields["name"] = payload.name
    if payload.description:
        update_fields["description"] = payload.description

    updated = db["playlist"].find_one_and_update(
        {"_id": pid},
        {"$set": update_fields},
        return_document=ReturnDocument.AFTER,
    )
    return api_response(200, to_str_id(updated), "Playlist updated successfully")
