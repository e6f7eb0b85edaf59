"""
Media storage for uploaded videos and thumbnails.

Files are written under ``UPLOAD_DIR/<kind>/`` with an ObjectId based
name and served by the static mount, so the stored URL is
``<STATIC_URL_PREFIX>/<kind>/<filename>``.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Optional

from bson import ObjectId
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from config import get_settings
from errors import MediaUploadError

logger = logging.getLogger(__name__)

VIDEO_KIND = "videos"
THUMBNAIL_KIND = "thumbnails"

DEFAULT_EXTENSIONS = {VIDEO_KIND: ".mp4", THUMBNAIL_KIND: ".jpg"}


@dataclass
class StoredMedia:
    url: str
    path: str
    size: int
    duration: float = 0.0


def get_duration(video_path: str) -> float:
    """
    Get video duration in seconds with ffprobe.

    Returns 0.0 when ffprobe is missing or cannot read the file.
    """
    cmd = [
        "ffprobe", "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        video_path,
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=30)
        return float(result.stdout.strip())
    except (OSError, subprocess.SubprocessError, ValueError) as e:
        logger.warning("Could not read duration of %s: %s", video_path, e)
        return 0.0


class MediaStorage:
    def __init__(self, root: str, url_prefix: str = "/static"):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")

    def directory(self, kind: str) -> str:
        path = os.path.join(self.root, kind)
        os.makedirs(path, exist_ok=True)
        return path

    async def save(self, upload: UploadFile, kind: str) -> StoredMedia:
        content = await upload.read()
        if not content:
            raise MediaUploadError(f"Uploaded {kind[:-1]} file is empty")

        ext = os.path.splitext(upload.filename or "")[1] or DEFAULT_EXTENSIONS.get(kind, "")
        filename = f"{ObjectId()}{ext}"
        destination = os.path.join(self.directory(kind), filename)
        try:
            with open(destination, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error("Failed to store %s upload at %s: %s", kind, destination, e)
            raise MediaUploadError() from e

        logger.info("Stored %s upload %s (%d bytes)", kind, filename, len(content))
        return StoredMedia(
            url=f"{self.url_prefix}/{kind}/{filename}",
            path=destination,
            size=len(content),
        )

    async def upload_video(self, upload: UploadFile) -> StoredMedia:
        stored = await self.save(upload, VIDEO_KIND)
        stored.duration = await run_in_threadpool(get_duration, stored.path)
        return stored

    async def upload_thumbnail(self, upload: UploadFile) -> StoredMedia:
        return await self.save(upload, THUMBNAIL_KIND)


_storage: Optional[MediaStorage] = None


def get_media_storage() -> MediaStorage:
    global _storage
    if _storage is None:
        settings = get_settings()
        _storage = MediaStorage(settings.upload_dir, settings.static_url_prefix)
    return _storage
