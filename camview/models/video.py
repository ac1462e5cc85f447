# /camview/models/video.py

from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DURATION_LOADING = "loading"
DURATION_UNKNOWN = "unknown"
DURATION_ERROR = "processing error"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class VideoKey(NamedTuple):
    camera_id: str
    date: str
    video_id: str

    def __str__(self) -> str:
        return f"{self.camera_id}_{self.date}_{self.video_id}"


class RoomKey(NamedTuple):
    camera_id: str
    date: str

    @property
    def name(self) -> str:
        return f"{self.camera_id}_{self.date}"

    def video(self, video_id: str) -> VideoKey:
        return VideoKey(self.camera_id, self.date, video_id)


class Camera(WireModel):
    id: str
    name: str


class DateParts(WireModel):
    year: str
    month: str
    day: str
    hour: str

    @property
    def formatted(self) -> str:
        return f"{self.year}-{self.month}-{self.day} {self.hour}:00"


class DateEntry(WireModel):
    date: str
    label: str


class VideoItem(WireModel):
    id: str
    name: str
    timestamp: int
    start_time: str
    duration: str = DURATION_LOADING
    thumbnail: Optional[str] = None
