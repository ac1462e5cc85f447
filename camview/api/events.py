# camview/api/events.py
import asyncio
import json
from collections import defaultdict
from typing import Any, Dict, NamedTuple, Optional, Set

from camview.config import logger
from camview.models import RoomKey
from camview.utils.misc import new_id


def make_message(event: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"event": event, "data": data}


class Subscriber:
    """One connected client. Messages for every room it joined land in one queue."""

    def __init__(self, maxsize: int = 100) -> None:
        self.id = new_id()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def deliver(self, message: Dict[str, Any]) -> None:
        """Queue message. When the queue is full the oldest message makes room, so the latest always lands."""
        while True:
            try:
                self._queue.put_nowait(message)
                return
            except asyncio.QueueFull:
                dropped = self._queue.get_nowait()
                logger.warning(f"Subscriber {self.id} queue full, dropping oldest {dropped.get('event')}")

    async def get(self) -> Dict[str, Any]:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class Subscription(NamedTuple):
    room: RoomKey
    subscriber: Subscriber


class RoomHub:
    def __init__(self) -> None:
        self._subs: Dict[RoomKey, Set[Subscriber]] = defaultdict(set)
        self._last: Dict[RoomKey, dict] = {}  # last event published per room

    def subscribe(self, room: RoomKey, subscriber: Subscriber) -> Subscription:
        self._subs[room].add(subscriber)
        logger.info(f"Client {subscriber.id} joined room {room.name}")
        return Subscription(room, subscriber)

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Leave a room. Safe to call more than once. True if the room is now empty."""
        room, subscriber = subscription
        subs = self._subs.get(room)
        if subs and subscriber in subs:
            subs.remove(subscriber)
            logger.info(f"Client {subscriber.id} left room {room.name}")
        if not subs:
            self._subs.pop(room, None)
            self._last.pop(room, None)
            logger.debug(f"Room {room.name} has no clients")
            return True
        return False

    def disconnect(self, subscriber: Subscriber) -> None:
        for room in [room for room, subs in self._subs.items() if subscriber in subs]:
            self.unsubscribe(Subscription(room, subscriber))

    async def publish(self, room: RoomKey, event: str, payload: Dict[str, Any]) -> int:
        message = make_message(event, payload)
        self._last[room] = message
        subscribers = list(self._subs.get(room, ()))
        for subscriber in subscribers:
            subscriber.deliver(message)
        return len(subscribers)

    def members(self, room: RoomKey) -> int:
        return len(self._subs.get(room, ()))

    def last(self, room: RoomKey) -> Optional[dict]:
        return self._last.get(room)


def sse_format(data: dict) -> str:
    # keep it simple: only data lines
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"
