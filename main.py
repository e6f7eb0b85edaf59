import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import database
from config import get_settings
from errors import register_exception_handlers
from media import THUMBNAIL_KIND, VIDEO_KIND
from routers import all_routers

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is None:
        logger.warning("DATABASE_URL is not set; database routes will fail")
    else:
        database.ensure_indexes(database.db)
    yield


app = FastAPI(title="Video Sharing Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Ensure upload directories exist
os.makedirs(os.path.join(settings.upload_dir, VIDEO_KIND), exist_ok=True)
os.makedirs(os.path.join(settings.upload_dir, THUMBNAIL_KIND), exist_ok=True)

# Uploaded media is served from the upload directory
app.mount(settings.static_url_prefix, StaticFiles(directory=settings.upload_dir), name="static")

for router in all_routers:
    app.include_router(router)


# -------------------- Basic Routes --------------------
@app.get("/")
def read_root():
    return {"message": "Video Sharing Backend is running"}


@app.get("/test")
def test_database():
    info = {
        "backend": "running",
        "database_connected": False,
        "database_name": None,
        "collections": []
    }
    try:
        if database.db is not None:
            info["database_name"] = database.db.name
            info["collections"] = database.db.list_collection_names()
            info["database_connected"] = True
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        info["error"] = str(e)
    return info


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
