"""Websocket bridges onto the push channel."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from app.dependencies import get_push
from app.services.push import PushChannel, group_topic, notifications_topic

_LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _relay(websocket: WebSocket, push: PushChannel, topic: str) -> None:
    """Forward topic messages to the socket until either side stops.

    A relay that dies (push backend gone, send failure) closes the socket so
    the client reconnects instead of waiting on a silent stream.
    """
    await websocket.accept()
    _LOGGER.info("[WS] subscribed to %s", topic)

    async def forward() -> None:
        async for message in push.listen(topic):
            await websocket.send_json(message)

    async def drain() -> None:
        # inbound frames are ignored; reading is how a disconnect is noticed
        while True:
            await websocket.receive_text()

    forwarder = asyncio.create_task(forward())
    receiver = asyncio.create_task(drain())
    done, pending = await asyncio.wait(
        {forwarder, receiver}, return_when=asyncio.FIRST_COMPLETED
    )
    for task in pending:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    relay_error = forwarder.exception() if forwarder in done else None
    if relay_error is not None:
        _LOGGER.error("[WS] relay for %s stopped", topic, exc_info=relay_error)

    if receiver in done:
        exc = receiver.exception()
        if exc is not None and not isinstance(exc, WebSocketDisconnect):
            _LOGGER.warning("[WS] receive on %s failed: %r", topic, exc)
        _LOGGER.info("[WS] disconnected from %s", topic)
        return

    with contextlib.suppress(RuntimeError):
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)


@router.websocket("/ws/notifications/{user_id}")
async def notifications_socket(
    websocket: WebSocket, user_id: str, push: PushChannel = Depends(get_push)
):
    await _relay(websocket, push, notifications_topic(user_id))


@router.websocket("/ws/groups/{group_id}")
async def group_socket(
    websocket: WebSocket, group_id: str, push: PushChannel = Depends(get_push)
):
    await _relay(websocket, push, group_topic(group_id))
