# camview/services/scheduler.py
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List

from camview.api.events import RoomHub
from camview.config import APIConfig, logger
from camview.models import DurationUpdated, ProcessingComplete, RoomKey, ThumbnailGenerated, VideoItem
from camview.models.events import DURATION_UPDATED, PROCESSING_COMPLETE, THUMBNAIL_GENERATED
from camview.models.video import DURATION_ERROR
from camview.services.media import DurationService, ThumbnailPipeline
from camview.services.store import RoomRegistry
from camview.utils.misc import now_ms


class BatchScheduler:
    """
    Fill in durations and thumbnails for one (camera, date) listing.

    Item 0 goes first, then windows of batch_size items are processed one item at
    a time, with a pause of batch_interval between windows. Progress is published
    to the room; the run stops as soon as the room is marked completed.
    """

    def __init__(
        self,
        cfg: APIConfig,
        durations: DurationService,
        thumbnails: ThumbnailPipeline,
        hub: RoomHub,
        rooms: RoomRegistry,
    ) -> None:
        self.batch_size: int = max(1, cfg.BATCH_SIZE)
        self.batch_interval: float = cfg.BATCH_INTERVAL_S
        self.durations = durations
        self.thumbnails = thumbnails
        self.hub = hub
        self.rooms = rooms

    def _halted(self, room: RoomKey, replay: bool = False) -> bool:
        return not replay and self.rooms.is_completed(room)

    async def _process_item(
        self,
        room: RoomKey,
        videos: List[VideoItem],
        index: int,
        videos_path: Path,
        replay: bool = False,
    ) -> None:
        video = videos[index]
        key = room.video(video.id)
        file_path = videos_path / video.name
        total = len(videos)

        try:
            duration = await self.durations.get_duration(key, file_path)
            if self._halted(room, replay):
                return
            update = DurationUpdated(
                video_id=video.id,
                duration=duration,
                timestamp=now_ms(),
                index=index,
                total=total,
                is_first_video=True if index == 0 else None,
            )
            await self.hub.publish(room, DURATION_UPDATED, update.model_dump(by_alias=True, exclude_none=True))

            outcome = await self.thumbnails.ensure_thumbnail(key, file_path)
            if outcome.usable and not self._halted(room, replay):
                generated = ThumbnailGenerated(video_id=video.id, thumbnail=outcome.url)
                await self.hub.publish(room, THUMBNAIL_GENERATED, generated.model_dump(by_alias=True))
        except Exception as exc:
            # one bad file must not stop the batch
            logger.exception(f"Failed to process video {video.name}: {exc}")
            if not self._halted(room, replay):
                update = DurationUpdated(
                    video_id=video.id,
                    duration=DURATION_ERROR,
                    error=True,
                    timestamp=now_ms(),
                    index=index,
                    total=total,
                )
                await self.hub.publish(room, DURATION_UPDATED, update.model_dump(by_alias=True, exclude_none=True))

    async def _publish_complete(self, room: RoomKey, total: int) -> None:
        complete = ProcessingComplete(total_videos=total, timestamp=now_ms())
        await self.hub.publish(room, PROCESSING_COMPLETE, complete.model_dump(by_alias=True))

    async def replay(self, room: RoomKey, videos: List[VideoItem], videos_path: Path) -> None:
        """
        Republish the results of a completed room, in listing order and without
        pausing between windows. Cached results are served as is; durations that
        came out "unknown" are probed again.
        """
        logger.info(f"Room {room.name} is already processed, replaying {len(videos)} results")
        for index in range(len(videos)):
            await self._process_item(room, videos, index, videos_path, replay=True)
        await self._publish_complete(room, len(videos))

    async def run(self, room: RoomKey, videos: List[VideoItem], videos_path: Path) -> bool:
        """
        Process the listing. True when this run published processingComplete.

        A room that already completed gets its results replayed instead; a room
        with a run underway is left to that run.
        """
        if not self.rooms.try_start(room):
            if self.rooms.is_completed(room):
                await self.replay(room, videos, videos_path)
            else:
                logger.info(f"Room {room.name} is already being processed, not starting another batch")
            return False

        total = len(videos)
        logger.info(f"Batch processing {total} videos for room {room.name}")
        try:
            if total and not self._halted(room):
                await self._process_item(room, videos, 0, videos_path)

            start = 0
            while start < total:
                end = min(start + self.batch_size, total)
                for index in range(max(start, 1), end):
                    if self._halted(room):
                        logger.info(f"Room {room.name} is already processed, stopping current batch")
                        return False
                    await self._process_item(room, videos, index, videos_path)

                start = end
                if start < total:
                    await asyncio.sleep(self.batch_interval)

            if self._halted(room):
                logger.info(f"Room {room.name} is already processed, skipping completion")
                return False

            await self._publish_complete(room, total)
            self.rooms.complete(room)
            return True
        finally:
            self.rooms.release(room)
