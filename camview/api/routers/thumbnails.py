# /camview/api/routers/thumbnails.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, JSONResponse

from camview.api.dependencies import get_services
from camview.config import logger
from camview.exceptions import NotFoundError, ThumbnailError
from camview.models import VideoKey
from camview.services.container import Services
from camview.services.media import ThumbnailStatus

thumbnails_router = APIRouter(
    prefix="/thumbnails",
    tags=["thumbnails"]
)

HOUR_THUMBNAIL_ID = "thumb"


def error_image_response(services: Services) -> FileResponse:
    error_image = services.thumbnails.error_image
    if not error_image.exists():
        raise HTTPException(status_code=500, detail="Cannot generate thumbnail")
    return FileResponse(error_image)

def processing_response() -> JSONResponse:
    return JSONResponse(
        status_code=202,
        content={"status": "processing", "message": "Thumbnail is being generated, please try again later"},
    )

@thumbnails_router.get("/{camera_id}/{date_or_hour}")
async def hour_thumbnail(camera_id: str, date_or_hour: str, services: Services = Depends(get_services)):
    """
    Thumbnail for an hour directory, taken from its first video.
    """
    key = VideoKey(camera_id, date_or_hour, HOUR_THUMBNAIL_ID)
    pipeline = services.thumbnails
    cache = services.store.cache

    if cache.has_failed(key):
        logger.debug(f"Returning error image for {key}")
        return error_image_response(services)

    if key in services.store.in_flight:
        return processing_response()

    try:
        files = services.directory.video_files(camera_id, date_or_hour)
    except NotFoundError as exc:
        cache.mark_failed(key)
        raise HTTPException(status_code=404, detail=str(exc))
    if not files:
        cache.mark_failed(key)
        raise HTTPException(status_code=404, detail="No video found at specified time")

    dest_path = pipeline.thumbnail_dir / camera_id / f"{key}.jpg"
    try:
        outcome = await pipeline.ensure_thumbnail(key, files[0], dest_path)
    except ThumbnailError as exc:
        logger.error(str(exc))
        raise HTTPException(status_code=500, detail="Failed to get thumbnail")

    if outcome.status is ThumbnailStatus.NOT_READY:
        return processing_response()
    if outcome.url == pipeline.fallback_url:
        return error_image_response(services)
    return FileResponse(dest_path)
