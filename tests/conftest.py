import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest
from fastapi.testclient import TestClient

from camview.api.app import create_app
from camview.config import APIConfig
from camview.integrations.ffmpeg import ToolResult
from camview.services.container import build_services

PLACEHOLDER_BYTES = b"placeholder-image"


class FakeProbe:
    """Stands in for MediaProbe: records every call and never spawns ffmpeg."""

    ffmpeg_path = "ffmpeg"
    ffprobe_path = "ffprobe"

    def __init__(self) -> None:
        self.duration_calls: List[Path] = []
        self.thumbnail_calls: List[Path] = []
        self.durations: Dict[str, Union[str, ToolResult]] = {}
        self.default_duration = "01:00"
        self.thumbnail_results: Dict[str, ToolResult] = {}
        self.delay = 0.0
        self.duration_delay = 0.0
        self.on_duration: Optional[Callable[[Path], None]] = None

    async def probe_duration(self, file_path: Path) -> ToolResult:
        self.duration_calls.append(file_path)
        if self.duration_delay:
            await asyncio.sleep(self.duration_delay)
        if self.on_duration:
            self.on_duration(file_path)
        result = self.durations.get(file_path.name, self.default_duration)
        return result if isinstance(result, ToolResult) else ToolResult.success(result)

    async def generate_thumbnail(self, source_path: Path, dest_path: Path) -> ToolResult:
        self.thumbnail_calls.append(source_path)
        if self.delay:
            await asyncio.sleep(self.delay)
        if source_path.name in self.thumbnail_results:
            return self.thumbnail_results[source_path.name]
        dest_path.write_bytes(b"\xff\xd8fake-jpeg")
        return ToolResult.success(dest_path)


@pytest.fixture()
def cfg(tmp_path):
    videos = tmp_path / "videos"
    videos.mkdir()
    error_image = tmp_path / "assets" / "error_thumbnail.jpg"
    error_image.parent.mkdir()
    error_image.write_bytes(PLACEHOLDER_BYTES)
    return APIConfig(
        VIDEO_BASE_PATH=videos,
        THUMBNAIL_DIR=tmp_path / "thumbnails",
        ERROR_IMAGE_PATH=error_image,
        CAMERA_NAMES="abc123:Garage",
        BATCH_SIZE=2,
        BATCH_INTERVAL_S=0,
        DURATION_TIMEOUT_S=1,
        THUMBNAIL_TIMEOUT_S=1,
    )


@pytest.fixture()
def probe():
    return FakeProbe()


@pytest.fixture()
def services(cfg, probe):
    return build_services(cfg, probe)


@pytest.fixture()
def client(cfg, probe):
    app = create_app(cfg, probe)
    with TestClient(app) as c:
        yield c
