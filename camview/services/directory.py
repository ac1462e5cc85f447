# camview/services/directory.py
from pathlib import Path
from typing import Callable, List, Optional

from camview.config import APIConfig, logger
from camview.exceptions import NotFoundError
from camview.models import Camera, DateEntry, RoomKey, VideoItem
from camview.models.video import DURATION_LOADING
from camview.services.store import ResultCache
from camview.utils.misc import parse_date_string, parse_start_time, parse_timestamp


class VideoDirectory:
    """
    Read-only view of the <root>/<camera>/<date>/<video> tree.
    """

    def __init__(
        self,
        cfg: APIConfig,
        thumbnail_url: Optional[Callable[[RoomKey, str], str]] = None,
        cache: Optional[ResultCache] = None,
    ) -> None:
        self.root: Path = cfg.VIDEO_BASE_PATH
        self.extension: str = cfg.VIDEO_EXTENSION.lower()
        self.sort_key: str = cfg.VIDEO_SORT_KEY
        self.camera_names = cfg.camera_names
        self.date_format = cfg.DATE_FORMAT
        self.thumbnail_url = thumbnail_url
        self.cache = cache

    def _join(self, *parts: str) -> Path:
        """Join under the video root; anything resolving outside it does not exist."""
        root = self.root.resolve()
        target = root.joinpath(*parts).resolve()
        if target != root and root not in target.parents:
            raise NotFoundError(f"Path escapes video root: {'/'.join(parts)}")
        return target

    def camera_name(self, camera_id: str) -> str:
        return self.camera_names.get(camera_id, f"Camera {camera_id}")

    def list_cameras(self) -> List[Camera]:
        if not self.root.is_dir():
            raise NotFoundError(f"Video root not found: {self.root}")
        return [
            Camera(id=entry.name, name=self.camera_name(entry.name))
            for entry in sorted(self.root.iterdir())
            if entry.is_dir()
        ]

    def camera_path(self, camera_id: str) -> Path:
        path = self._join(camera_id)
        if not path.is_dir():
            raise NotFoundError(f"Cannot find camera {camera_id}")
        return path

    def list_dates(self, camera_id: str) -> List[DateEntry]:
        camera_path = self.camera_path(camera_id)
        dates = [
            DateEntry(date=entry.name, label=parse_date_string(entry.name, self.date_format).formatted)
            for entry in camera_path.iterdir()
            if entry.is_dir()
        ]
        return sorted(dates, key=lambda d: d.date)

    def date_path(self, camera_id: str, date: str) -> Path:
        path = self._join(camera_id, date)
        if not path.is_dir():
            raise NotFoundError(f"Cannot find date {date} for camera {camera_id}")
        return path

    def video_files(self, camera_id: str, date: str) -> List[Path]:
        """Media files of one date directory, in filename order."""
        date_path = self.date_path(camera_id, date)
        return sorted(
            (f for f in date_path.iterdir() if f.is_file() and f.suffix.lower() == self.extension),
            key=lambda f: f.name,
        )

    def to_video_item(self, room: RoomKey, file: Path) -> VideoItem:
        """
        Build the listing entry for file. Durations and thumbnails already in the
        cache are filled in; anything else stays "loading" until processed.
        """
        # {startTimeToken}_{unixTimestamp}.mp4, e.g. 05M30S_1715774730.mp4
        video_id = file.stem
        start_token, _, timestamp_token = video_id.partition("_")

        duration, thumbnail = None, None
        if self.cache is not None:
            duration = self.cache.get_duration(room.video(video_id))
            thumbnail = self.cache.get_thumbnail(room.video(video_id))
        if thumbnail is None and self.thumbnail_url:
            thumbnail = self.thumbnail_url(room, video_id)

        return VideoItem(
            id=video_id,
            name=file.name,
            timestamp=parse_timestamp(timestamp_token.split("_")[0]),
            start_time=parse_start_time(start_token),
            duration=duration or DURATION_LOADING,
            thumbnail=thumbnail,
        )

    def list_videos(self, camera_id: str, date: str) -> List[VideoItem]:
        room = RoomKey(camera_id, date)
        videos = [self.to_video_item(room, f) for f in self.video_files(camera_id, date)]
        if self.sort_key == "timestamp":
            videos.sort(key=lambda v: (v.timestamp, v.name))
        logger.debug(f"Listed {len(videos)} videos for {room.name}")
        return videos

    def find_video(self, camera_id: str, date: str, video_id: str) -> Path:
        for file in self.video_files(camera_id, date):
            if file.stem == video_id:
                return file
        raise NotFoundError(f"Cannot find video {video_id} in {camera_id}/{date}")
