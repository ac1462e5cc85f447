# /camview/api/schemas.py

from typing import Any, Dict, Literal

from pydantic import BaseModel, Field

from camview.models import RoomKey
from camview.models.video import WireModel

# Requests
class RoomRequest(WireModel):
    camera_id: str
    date: str

    @property
    def room(self) -> RoomKey:
        return RoomKey(self.camera_id, self.date)

class VideoInfoRequest(RoomRequest):
    video_id: str

class ClientMessage(BaseModel):
    event: Literal["joinRoom", "leaveRoom", "requestVideoInfo"]
    data: Dict[str, Any] = Field(default_factory=dict)

# Responses
class ProcessingResponse(WireModel):
    status: str = "processing"
    total_videos: int
    message: str = ""

class HealthResponse(BaseModel):
    status: str = "ok"
    ffmpeg: bool
    ffprobe: bool
