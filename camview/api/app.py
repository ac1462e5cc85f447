# /camview/api/app.py

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from camview.api.routers import router
from camview.api.routers.thumbnails import error_image_response
from camview.config import APIConfig, get_api_config, logger
from camview.exceptions import NotFoundError
from camview.integrations.ffmpeg import MediaProbe, check_media_tools
from camview.integrations.images import ensure_error_image
from camview.services.container import build_services


def create_app(cfg: Optional[APIConfig] = None, probe: Optional[MediaProbe] = None) -> FastAPI:
    cfg = cfg or get_api_config()
    services = build_services(cfg, probe)

    app = FastAPI(title="camview API", version="v1.0", redirect_slashes=False)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Length", "Content-Type", "Accept-Ranges", "Content-Range"],
        allow_credentials=False,
        max_age=86400,
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.on_event("startup")
    def on_startup():
        check_media_tools(cfg)

        # Ensure storage directories
        cfg.THUMBNAIL_DIR.mkdir(parents=True, exist_ok=True)
        ensure_error_image(cfg.ERROR_IMAGE_PATH, cfg.THUMBNAIL_WIDTH, cfg.THUMBNAIL_HEIGHT)

        if not cfg.VIDEO_BASE_PATH.is_dir():
            logger.warning(f"Video directory {cfg.VIDEO_BASE_PATH} does not exist")
        logger.info(f"Video directory path: {cfg.VIDEO_BASE_PATH}")

    @app.get("/error_thumbnail.jpg", include_in_schema=False)
    def error_thumbnail():
        return error_image_response(services)

    app.include_router(router, prefix="/api")
    app.mount("/videos", StaticFiles(directory=cfg.VIDEO_BASE_PATH, check_dir=False), name="videos")
    app.mount("/thumbnails", StaticFiles(directory=cfg.THUMBNAIL_DIR, check_dir=False), name="thumbnails")
    return app


app = create_app()
