# /camview/api/routers/utils.py

from fastapi import APIRouter, Depends

from camview.api.dependencies import get_services
from camview.api.schemas import HealthResponse
from camview.services.container import Services

utils_router = APIRouter(
    prefix="/utils",
    tags=["utils"]
)

@utils_router.get("/health")
def health(services: Services = Depends(get_services)) -> HealthResponse:
    """
    Simple check to see if the API is running and which media tools it can use.
    """
    return HealthResponse(
        ffmpeg=bool(services.probe.ffmpeg_path),
        ffprobe=bool(services.probe.ffprobe_path),
    )
