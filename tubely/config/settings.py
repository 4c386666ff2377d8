from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TUBELY_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8091
    DEBUG: bool = False
    BASE_URL: str = "http://localhost:8091"

    # Paths
    DB_PATH: str = "/data/db/tubely.db"
    ASSETS_ROOT: str = "/data/assets"
    TEMP_DIR: str = "/tmp/tubely"

    # Auth
    JWT_SECRET: str = "change-me"

    # Thumbnails are kept either on disk under ASSETS_ROOT or in process memory
    THUMBNAIL_STORAGE: Literal["disk", "memory"] = "disk"

    # Object storage
    S3_BUCKET: str = "tubely-videos"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str | None = None  # MinIO, LocalStack

    # Media probing
    FFPROBE_PATH: str = "ffprobe"

    # Upload limits
    MAX_THUMBNAIL_UPLOAD_BYTES: int = 10 << 20
    MAX_VIDEO_UPLOAD_BYTES: int = 1 << 30

    def ensure_directories(self) -> None:
        for dir_path in [self.ASSETS_ROOT, self.TEMP_DIR]:
            Path(dir_path).mkdir(parents=True, exist_ok=True)
        if self.DB_PATH != ":memory:":
            Path(self.DB_PATH).parent.mkdir(parents=True, exist_ok=True)


settings = Settings()
