import os
import tempfile
from datetime import timedelta

import mongomock
import pytest

# Settings are read once at import time; keep the test run off any real database.
os.environ.pop("DATABASE_URL", None)
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="uploads-"))

from fastapi.testclient import TestClient  # noqa: E402

import media  # noqa: E402
from database import get_db, utcnow  # noqa: E402
from main import app  # noqa: E402
from media import MediaStorage, get_media_storage  # noqa: E402


@pytest.fixture
def db():
    return mongomock.MongoClient()["videotube_test"]


@pytest.fixture
def storage(tmp_path):
    return MediaStorage(str(tmp_path / "uploads"), "/static")


@pytest.fixture
def client(db, storage, monkeypatch):
    monkeypatch.setattr(media, "get_duration", lambda path: 12.5)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_media_storage] = lambda: storage
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, avatar=None):
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        return db["user"].insert_one({
            "username": name,
            "email": f"{name}@example.com",
            "avatar": avatar or f"/static/avatars/{name}.png",
            "createdAt": utcnow(),
        }).inserted_id

    return _make


@pytest.fixture
def make_video(db):
    counter = {"n": 0}
    base = utcnow()

    def _make(owner, title=None, description="A video", views=0, is_published=True, age_minutes=None):
        counter["n"] += 1
        # later videos are newer unless an explicit age is given
        created = base - timedelta(minutes=age_minutes) if age_minutes is not None else base + timedelta(minutes=counter["n"])
        return db["video"].insert_one({
            "title": title or f"Video {counter['n']}",
            "description": description,
            "videoFile": f"/static/videos/{counter['n']}.mp4",
            "thumbnail": f"/static/thumbnails/{counter['n']}.jpg",
            "duration": 10.0,
            "views": views,
            "isPublished": is_published,
            "owner": owner,
            "createdAt": created,
            "updatedAt": created,
        }).inserted_id

    return _make


def as_user(user_id):
    return {"X-User-Id": str(user_id)}
