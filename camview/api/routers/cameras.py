# /camview/api/routers/cameras.py

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from camview.api.dependencies import get_services
from camview.models import Camera, DateEntry, RoomKey, VideoItem
from camview.services.container import Services

cameras_router = APIRouter(
    prefix="/cameras",
    tags=["cameras"]
)

@cameras_router.get("")
def list_cameras(services: Services = Depends(get_services)) -> List[Camera]:
    return services.directory.list_cameras()

@cameras_router.get("/{camera_id}/dates")
def list_dates(camera_id: str, services: Services = Depends(get_services)) -> List[DateEntry]:
    return services.directory.list_dates(camera_id)

@cameras_router.get("/{camera_id}/dates/{date}/videos")
def list_videos(
    camera_id: str,
    date: str,
    background: BackgroundTasks,
    services: Services = Depends(get_services),
) -> List[VideoItem]:
    """
    Return the listing straight away with duration "loading", then fill in
    durations and thumbnails in the background and publish them to the room.
    """
    videos = services.directory.list_videos(camera_id, date)
    videos_path = services.directory.date_path(camera_id, date)

    background.add_task(services.scheduler.run, RoomKey(camera_id, date), videos, videos_path)
    return videos
