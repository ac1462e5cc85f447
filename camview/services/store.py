# /camview/services/store.py
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Set

from camview.config import logger
from camview.models import RoomKey, VideoKey


class ResultCache:
    """
    Completed durations, completed thumbnail URLs and keys whose thumbnail failed
    for good. Entries live until reset(); there is no eviction.
    """

    def __init__(self) -> None:
        self._durations: Dict[VideoKey, str] = {}
        self._thumbnails: Dict[VideoKey, str] = {}
        self._failures: Set[VideoKey] = set()

    def get_duration(self, key: VideoKey) -> Optional[str]:
        return self._durations.get(key)

    def set_duration(self, key: VideoKey, duration: str) -> None:
        self._durations[key] = duration

    def get_thumbnail(self, key: VideoKey) -> Optional[str]:
        return self._thumbnails.get(key)

    def set_thumbnail(self, key: VideoKey, url: str) -> None:
        self._thumbnails[key] = url

    def mark_failed(self, key: VideoKey) -> None:
        self._failures.add(key)

    def has_failed(self, key: VideoKey) -> bool:
        return key in self._failures

    def clear(self) -> None:
        self._durations.clear()
        self._thumbnails.clear()
        self._failures.clear()


class InFlightTracker:
    """Keys with a generation attempt underway. At most one attempt per key."""

    def __init__(self) -> None:
        self._keys: Set[VideoKey] = set()

    def try_acquire(self, key: VideoKey) -> bool:
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def release(self, key: VideoKey) -> None:
        self._keys.discard(key)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def clear(self) -> None:
        self._keys.clear()


class RoomState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"


class RoomRegistry:
    """
    Batch state per (camera, date). COMPLETED is a latch that holds until reset(),
    independent of who is subscribed to the room.
    """

    def __init__(self) -> None:
        self._states: Dict[RoomKey, RoomState] = {}

    def state(self, room: RoomKey) -> RoomState:
        return self._states.get(room, RoomState.NOT_STARTED)

    def is_completed(self, room: RoomKey) -> bool:
        return self.state(room) is RoomState.COMPLETED

    def try_start(self, room: RoomKey) -> bool:
        """NOT_STARTED -> RUNNING. False when a run is underway or already finished."""
        if self.state(room) is not RoomState.NOT_STARTED:
            return False
        self._states[room] = RoomState.RUNNING
        return True

    def complete(self, room: RoomKey) -> None:
        self._states[room] = RoomState.COMPLETED
        logger.info(f"Room {room.name} processing completed, marked as completed")

    def release(self, room: RoomKey) -> None:
        """A run ended without completing; allow a later trigger to start again."""
        if self.state(room) is RoomState.RUNNING:
            del self._states[room]

    def clear(self) -> None:
        self._states.clear()


class ProcessingStore:
    def __init__(self) -> None:
        self.cache = ResultCache()
        self.in_flight = InFlightTracker()
        self.rooms = RoomRegistry()

    def reset(self) -> None:
        self.cache.clear()
        self.in_flight.clear()
        self.rooms.clear()
