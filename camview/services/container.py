# camview/services/container.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from camview.api.events import RoomHub
from camview.config import APIConfig
from camview.integrations.ffmpeg import MediaProbe
from camview.models import RoomKey
from camview.services.directory import VideoDirectory
from camview.services.media import DurationService, ThumbnailPipeline
from camview.services.scheduler import BatchScheduler
from camview.services.store import ProcessingStore


@dataclass
class Services:
    cfg: APIConfig
    store: ProcessingStore
    hub: RoomHub
    probe: MediaProbe
    directory: VideoDirectory
    durations: DurationService
    thumbnails: ThumbnailPipeline
    scheduler: BatchScheduler

    def reset(self) -> None:
        self.store.reset()


def build_services(cfg: APIConfig, probe: Optional[MediaProbe] = None) -> Services:
    store = ProcessingStore()
    hub = RoomHub()
    probe = probe or MediaProbe(cfg)

    durations = DurationService(probe, store)
    thumbnails = ThumbnailPipeline(cfg, probe, store)

    def thumbnail_url(room: RoomKey, video_id: str) -> str:
        return thumbnails.url_for(thumbnails.thumbnail_path(room.video(video_id)))

    directory = VideoDirectory(cfg, thumbnail_url=thumbnail_url, cache=store.cache)
    scheduler = BatchScheduler(cfg, durations, thumbnails, hub, store.rooms)

    return Services(
        cfg=cfg,
        store=store,
        hub=hub,
        probe=probe,
        directory=directory,
        durations=durations,
        thumbnails=thumbnails,
        scheduler=scheduler,
    )
