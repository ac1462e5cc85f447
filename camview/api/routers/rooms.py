# /camview/api/routers/rooms.py

import asyncio
from typing import Any, Dict, Set

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from camview.api.dependencies import get_services
from camview.api.events import Subscriber, Subscription, make_message, sse_format
from camview.api.schemas import ClientMessage, RoomRequest, VideoInfoRequest
from camview.config import logger
from camview.exceptions import NotFoundError
from camview.models import DurationUpdated, RoomKey
from camview.models.events import DURATION_UPDATED
from camview.services.container import Services
from camview.utils.misc import now_ms

rooms_router = APIRouter(
    prefix="/rooms",
    tags=["rooms"]
)


async def answer_video_info(services: Services, req: VideoInfoRequest) -> bool:
    """
    Out-of-band duration for one video, published straight to its room.
    Independent of any batch in progress.
    """
    room = req.room
    try:
        file_path = services.directory.find_video(req.camera_id, req.date, req.video_id)
    except NotFoundError as exc:
        logger.error(f"Cannot find requested video: {exc}")
        return False

    duration = await services.durations.get_duration(room.video(req.video_id), file_path)
    update = DurationUpdated(
        video_id=req.video_id,
        duration=duration,
        timestamp=now_ms(),
        is_special_request=True,
    )
    await services.hub.publish(room, DURATION_UPDATED, update.model_dump(by_alias=True, exclude_none=True))
    logger.info(f"Responded to special request: video {req.video_id} duration is {duration}")
    return True


async def _forward(subscriber: Subscriber, websocket: WebSocket) -> None:
    while True:
        message = await subscriber.get()
        await websocket.send_json(message)


async def _answer(services: Services, subscriber: Subscriber, req: VideoInfoRequest) -> None:
    if not await answer_video_info(services, req):
        subscriber.deliver(make_message("error", {"message": f"Cannot find video {req.video_id}"}))


async def _dispatch(
    services: Services,
    subscriber: Subscriber,
    subscriptions: Dict[RoomKey, Subscription],
    pending: Set[asyncio.Task],
    message: ClientMessage,
) -> None:
    if message.event == "joinRoom":
        room = RoomRequest.model_validate(message.data).room
        subscriptions[room] = services.hub.subscribe(room, subscriber)
        subscriber.deliver(make_message("roomJoined", {"room": room.name}))

    elif message.event == "leaveRoom":
        room = RoomRequest.model_validate(message.data).room
        subscription = subscriptions.pop(room, Subscription(room, subscriber))
        services.hub.unsubscribe(subscription)
        subscriber.deliver(make_message("roomLeft", {"room": room.name}))

    elif message.event == "requestVideoInfo":
        req = VideoInfoRequest.model_validate(message.data)
        # answered off the receive loop
        task = asyncio.create_task(_answer(services, subscriber, req))
        pending.add(task)
        task.add_done_callback(pending.discard)


@rooms_router.websocket("/ws")
async def room_socket(websocket: WebSocket, services: Services = Depends(get_services)):
    await websocket.accept()
    subscriber = Subscriber()
    subscriptions: Dict[RoomKey, Subscription] = {}
    pending: Set[asyncio.Task] = set()
    sender = asyncio.create_task(_forward(subscriber, websocket))
    logger.info(f"New WebSocket connection: {subscriber.id}")

    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = ClientMessage.model_validate_json(text)
                await _dispatch(services, subscriber, subscriptions, pending, message)
            except ValidationError as exc:
                errors: Any = exc.errors(include_url=False, include_context=False)
                subscriber.deliver(make_message("error", {"message": "Malformed message", "details": errors}))
    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected: {subscriber.id}")
    finally:
        services.hub.disconnect(subscriber)
        tasks = [sender, *pending]
        for task in tasks:
            task.cancel()
        for result in await asyncio.gather(*tasks, return_exceptions=True):
            if isinstance(result, Exception):
                logger.warning(f"WebSocket {subscriber.id} task ended with an error: {result!r}")


@rooms_router.get("/{camera_id}/{date}/events")
async def room_events(camera_id: str, date: str, request: Request, services: Services = Depends(get_services)):
    """
    Server-sent events feed of one room, for clients without WebSockets.
    """
    room = RoomKey(camera_id, date)
    subscriber = Subscriber()
    subscription = services.hub.subscribe(room, subscriber)

    async def event_stream():
        try:
            # send last known event if we have one
            last = services.hub.last(room)
            if last:
                yield sse_format(make_message("snapshot", last))
            else:
                yield sse_format(make_message("hello", {"room": room.name}))

            while True:
                try:
                    item = await asyncio.wait_for(subscriber.get(), timeout=20)
                    yield sse_format(item)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                if await request.is_disconnected():
                    break
        finally:
            services.hub.unsubscribe(subscription)

    return StreamingResponse(event_stream(), media_type="text/event-stream")
