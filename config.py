import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    database_url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", ""))
    database_name: str = Field(default_factory=lambda: os.getenv("DATABASE_NAME", "videotube"))
    upload_dir: str = Field(default_factory=lambda: os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads")))
    static_url_prefix: str = Field(default_factory=lambda: os.getenv("STATIC_URL_PREFIX", "/static"))
    cors_origins: List[str] = Field(default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", "*")))
    page_limit_default: int = Field(default_factory=lambda: int(os.getenv("PAGE_LIMIT_DEFAULT", "10")))
    page_limit_max: int = Field(default_factory=lambda: int(os.getenv("PAGE_LIMIT_MAX", "100")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
