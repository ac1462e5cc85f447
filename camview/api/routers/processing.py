# /camview/api/routers/processing.py

from fastapi import APIRouter, BackgroundTasks, Depends

from camview.api.dependencies import get_services
from camview.api.schemas import ProcessingResponse
from camview.models import RoomKey, VideoInfo
from camview.services.container import Services
from camview.utils.misc import now_ms

processing_router = APIRouter(tags=["processing"])

@processing_router.get("/process-videos/{camera_id}/{date}")
def process_videos(
    camera_id: str,
    date: str,
    background: BackgroundTasks,
    services: Services = Depends(get_services),
) -> ProcessingResponse:
    videos = services.directory.list_videos(camera_id, date)
    videos_path = services.directory.date_path(camera_id, date)

    background.add_task(services.scheduler.run, RoomKey(camera_id, date), videos, videos_path)
    return ProcessingResponse(
        total_videos=len(videos),
        message=f"Starting to process {len(videos)} videos, progress is published to the room",
    )

@processing_router.get("/video-duration/{camera_id}/{date}/{video_id}")
async def video_duration(
    camera_id: str,
    date: str,
    video_id: str,
    services: Services = Depends(get_services),
) -> VideoInfo:
    file_path = services.directory.find_video(camera_id, date, video_id)
    duration = await services.durations.get_duration(RoomKey(camera_id, date).video(video_id), file_path)
    return VideoInfo(video_id=video_id, duration=duration, timestamp=now_ms())
