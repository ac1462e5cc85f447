# /camview/models/events.py

from typing import Optional

from .video import WireModel

DURATION_UPDATED = "durationUpdated"
THUMBNAIL_GENERATED = "thumbnailGenerated"
PROCESSING_COMPLETE = "processingComplete"


class DurationUpdated(WireModel):
    video_id: str
    duration: str
    timestamp: int
    index: Optional[int] = None
    total: Optional[int] = None
    is_first_video: Optional[bool] = None
    is_special_request: Optional[bool] = None
    error: Optional[bool] = None


class ThumbnailGenerated(WireModel):
    video_id: str
    thumbnail: str


class ProcessingComplete(WireModel):
    total_videos: int
    timestamp: int


class VideoInfo(WireModel):
    video_id: str
    duration: str
    timestamp: int
