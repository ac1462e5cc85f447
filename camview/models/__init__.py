# /camview/models/__init__.py

from .video import Camera, DateEntry, DateParts, VideoItem, VideoKey, RoomKey

from .events import DurationUpdated, ThumbnailGenerated, ProcessingComplete, VideoInfo
