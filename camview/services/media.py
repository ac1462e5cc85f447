# camview/services/media.py
from __future__ import annotations

import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from camview.config import APIConfig, logger
from camview.exceptions import ThumbnailError
from camview.integrations.ffmpeg import MediaProbe
from camview.models import VideoKey
from camview.models.video import DURATION_UNKNOWN
from camview.services.store import ProcessingStore


class ThumbnailStatus(str, Enum):
    READY = "ready"
    FALLBACK = "fallback"
    NOT_READY = "not_ready"


@dataclass(frozen=True)
class ThumbnailOutcome:
    status: ThumbnailStatus
    url: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.url is not None


NOT_READY = ThumbnailOutcome(ThumbnailStatus.NOT_READY)


class DurationService:
    def __init__(self, probe: MediaProbe, store: ProcessingStore) -> None:
        self.probe = probe
        self.cache = store.cache

    async def get_duration(self, key: VideoKey, file_path: Path) -> str:
        """
        Cached MM:SS duration, probing on a miss. Failures and timeouts give
        "unknown" and are not cached.
        """
        cached = self.cache.get_duration(key)
        if cached is not None:
            return cached

        result = await self.probe.probe_duration(file_path)
        if not result.ok:
            logger.warning(f"Failed to get video duration for {file_path} ({result.status.value}): {result.reason}")
            return DURATION_UNKNOWN

        self.cache.set_duration(key, result.value)
        return result.value


class ThumbnailPipeline:
    def __init__(self, cfg: APIConfig, probe: MediaProbe, store: ProcessingStore) -> None:
        self.probe = probe
        self.cache = store.cache
        self.in_flight = store.in_flight
        self.thumbnail_dir: Path = cfg.THUMBNAIL_DIR
        self.error_image: Path = cfg.ERROR_IMAGE_PATH
        self.fallback_url: str = cfg.FALLBACK_THUMBNAIL_URL

    def thumbnail_path(self, key: VideoKey) -> Path:
        return self.thumbnail_dir / key.camera_id / key.date / f"{key}.jpg"

    def url_for(self, dest_path: Path) -> str:
        return "/thumbnails/" + dest_path.relative_to(self.thumbnail_dir).as_posix()

    def use_error_image(self, dest_path: Path) -> ThumbnailOutcome:
        """Copy the placeholder to dest_path, or hand out the fixed fallback URL if that fails."""
        try:
            shutil.copyfile(self.error_image, dest_path)
        except OSError as exc:
            logger.error(f"Failed to copy error image to {dest_path}: {exc}")
            return ThumbnailOutcome(ThumbnailStatus.FALLBACK, self.fallback_url)
        return ThumbnailOutcome(ThumbnailStatus.FALLBACK, self.url_for(dest_path))

    def _fail(self, key: VideoKey, dest_path: Path) -> ThumbnailOutcome:
        self.cache.mark_failed(key)
        return self.use_error_image(dest_path)

    async def ensure_thumbnail(self, key: VideoKey, source_path: Path, dest_path: Optional[Path] = None) -> ThumbnailOutcome:
        """
        Get-or-generate the thumbnail for key.

        Known failures get the placeholder without retrying. A cached URL is returned
        as is. While another attempt for the same key is underway the result is
        NOT_READY; callers should not wait on it. Otherwise an image already on disk
        is adopted, and only then is ffmpeg run. Raises ThumbnailError if the
        destination directory cannot be created.
        """
        dest_path = dest_path or self.thumbnail_path(key)

        if self.cache.has_failed(key):
            logger.debug(f"Thumbnail previously failed, using error image: {key}")
            return self.use_error_image(dest_path)

        cached = self.cache.get_thumbnail(key)
        if cached is not None:
            return ThumbnailOutcome(ThumbnailStatus.READY, cached)

        if not self.in_flight.try_acquire(key):
            logger.debug(f"Thumbnail {key} is already being processed")
            return NOT_READY

        try:
            if dest_path.exists():
                url = self.url_for(dest_path)
                self.cache.set_thumbnail(key, url)
                return ThumbnailOutcome(ThumbnailStatus.READY, url)

            try:
                dest_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ThumbnailError(f"Cannot create thumbnail directory {dest_path.parent}: {exc}") from exc

            if not source_path.exists():
                logger.error(f"Video file doesn't exist: {source_path}")
                return self._fail(key, dest_path)

            result = await self.probe.generate_thumbnail(source_path, dest_path)
            if not result.ok:
                logger.warning(f"Thumbnail generation {result.status.value} for {source_path}: {result.reason}")
                return self._fail(key, dest_path)

            url = self.url_for(dest_path)
            self.cache.set_thumbnail(key, url)
            return ThumbnailOutcome(ThumbnailStatus.READY, url)
        finally:
            self.in_flight.release(key)
