"""
Database Schemas for the video sharing backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user
- Video -> video
- Playlist -> playlist
- Like -> like
- Subscription -> subscription
- Comment -> comment

References to other documents are stored as ObjectIds so that $lookup
stages can join on them.
"""

from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)


class User(Document):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    passwordHash: str = Field(..., description="Bcrypt hash")
    avatar: Optional[str] = None
    bio: Optional[str] = None


class Video(Document):
    title: str = Field(..., min_length=1)
    description: str
    videoFile: str = Field(..., description="Hosted URL of the video file")
    thumbnail: str = Field(..., description="Hosted URL of the thumbnail")
    duration: float = Field(0.0, ge=0, description="Duration in seconds")
    views: int = Field(0, ge=0)
    isPublished: bool = True
    owner: ObjectId


class Playlist(Document):
    name: str = Field(..., min_length=1)
    description: str = ""
    owner: ObjectId
    videos: List[ObjectId] = Field(default_factory=list)


class Like(Document):
    """Exactly one of video / comment is set."""
    likedBy: ObjectId
    video: Optional[ObjectId] = None
    comment: Optional[ObjectId] = None


class Subscription(Document):
    subscriber: ObjectId = Field(..., description="The user who subscribes")
    channel: ObjectId = Field(..., description="The user being subscribed to")


class Comment(Document):
    content: str = Field(..., min_length=1)
    video: ObjectId
    owner: ObjectId


# -------------------- Request bodies --------------------

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)
    avatar: Optional[str] = None
    bio: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PlaylistCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class PlaylistUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CommentRequest(BaseModel):
    content: Optional[str] = None
