# /camview/api/routers/__init__.py

from fastapi import APIRouter

from .utils import utils_router
from .cameras import cameras_router
from .processing import processing_router
from .thumbnails import thumbnails_router
from .rooms import rooms_router

# Create a primary API router
router = APIRouter()


# Mount each sub-router under its own path segment
router.include_router(utils_router)
router.include_router(cameras_router)
router.include_router(processing_router)
router.include_router(thumbnails_router)
router.include_router(rooms_router)
