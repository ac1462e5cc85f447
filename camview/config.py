# /camview/config.py
import shutil
import sys
from pathlib import Path
from functools import lru_cache
from typing import ClassVar, Dict, List, Literal, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from loguru import logger
import imageio_ffmpeg

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class DateFormat(BaseModel):
    """Fixed character offsets of the parts of a date directory name (e.g. 2024051114)."""
    year_start: int = 0
    year_length: int = 4
    month_start: int = 4
    month_length: int = 2
    day_start: int = 6
    day_length: int = 2
    hour_start: int = 8
    hour_length: int = 2


class APIConfig(BaseSettings):
    # Generic
    APP_NAME: ClassVar[str] = "camview"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5001
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Storage
    VIDEO_BASE_PATH: Path = PROJECT_ROOT / "camera_videos"
    THUMBNAIL_DIR: Path = PROJECT_ROOT / "temp" / "thumbnails"
    ERROR_IMAGE_PATH: Path = PROJECT_ROOT / "temp" / "error_thumbnail.jpg"
    FALLBACK_THUMBNAIL_URL: str = "/error_thumbnail.jpg"

    # Listing
    VIDEO_EXTENSION: str = ".mp4"
    VIDEO_SORT_KEY: Literal["name", "timestamp"] = "name"
    CAMERA_NAMES: str = ""
    DATE_FORMAT: DateFormat = DateFormat()

    # Media tools
    FFMPEG_PATH: Optional[str] = None
    FFPROBE_PATH: Optional[str] = None
    THUMBNAIL_TIMEOUT_S: float = 10.0
    DURATION_TIMEOUT_S: float = 15.0
    THUMBNAIL_WIDTH: int = 320
    THUMBNAIL_HEIGHT: int = 180
    THUMBNAIL_SEEK_RATIO: float = 0.05

    # Batch processing
    BATCH_SIZE: int = 5
    BATCH_INTERVAL_S: float = 0.5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def camera_names(self) -> Dict[str, str]:
        """Parse CAMERA_NAMES ("id1:Name 1,id2:Name 2") into a mapping."""
        cameras: Dict[str, str] = {}
        for pair in self.CAMERA_NAMES.split(","):
            camera_id, sep, name = pair.partition(":")
            if sep and camera_id.strip() and name.strip():
                cameras[camera_id.strip()] = name.strip()
        return cameras

    @property
    def ffprobe_path(self) -> Optional[str]:
        return self.FFPROBE_PATH or shutil.which("ffprobe")

    @property
    def ffmpeg_path(self) -> Optional[str]:
        if self.FFMPEG_PATH:
            return self.FFMPEG_PATH
        try:
            return imageio_ffmpeg.get_ffmpeg_exe()
        except RuntimeError:
            return shutil.which("ffmpeg")


@lru_cache()
def get_api_config() -> APIConfig:
    return APIConfig()


def configure_logger(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stdout,
        filter=lambda rec: rec["level"].name == "CRITICAL",
        colorize=True,
        format="<green>{time:HH:mm:ss}</green> | <red>{level: <8}</red> | <white>{message}</white>",
    )
    logger.add(
        sys.stdout,
        level=level,
        filter=lambda rec: rec["level"].name != "CRITICAL",
        colorize=True,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
    )


# Logger
configure_logger(get_api_config().LOG_LEVEL)
