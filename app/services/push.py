"""Real-time push: emit JSON events to topics such as ``notifications:{user_id}``.

Delivery is at-most-once. With nobody subscribed an event is simply lost, and
``emit`` never raises.

Two implementations:
- ``RedisPushChannel`` bridges the Celery worker and the API process
  through Redis pub/sub (production).
- ``LocalPushChannel`` keeps subscribers in-process (single-process dev,
  tests).
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, AsyncIterator, Dict, Protocol, Set

import redis.asyncio as aioredis

from config import Settings

_LOGGER = logging.getLogger(__name__)


def notifications_topic(user_id: str) -> str:
    return f"notifications:{user_id}"


def group_topic(group_id: str) -> str:
    return f"group:{group_id}"


class PushChannel(Protocol):
    async def emit(self, topic: str, event: str, payload: Dict[str, Any]) -> None: ...

    def listen(self, topic: str) -> AsyncIterator[Dict[str, Any]]: ...

    async def close(self) -> None: ...


class LocalPushChannel:
    def __init__(self) -> None:
        self._subscribers: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    async def emit(self, topic: str, event: str, payload: Dict[str, Any]) -> None:
        queues = self._subscribers.get(topic)
        if not queues:
            _LOGGER.debug("[Push] no subscriber on %s; dropping %s", topic, event)
            return
        message = {"event": event, "data": payload}
        for q in list(queues):
            q.put_nowait(message)

    async def listen(self, topic: str) -> AsyncIterator[Dict[str, Any]]:
        q: asyncio.Queue = asyncio.Queue()
        self._subscribers[topic].add(q)
        try:
            while True:
                yield await q.get()
        finally:
            self._subscribers[topic].discard(q)
            if not self._subscribers[topic]:
                del self._subscribers[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    async def close(self) -> None:
        self._subscribers.clear()


class RedisPushChannel:
    def __init__(self, url: str) -> None:
        self._redis = aioredis.from_url(url, decode_responses=True)

    async def emit(self, topic: str, event: str, payload: Dict[str, Any]) -> None:
        message = json.dumps({"event": event, "data": payload}, default=str)
        try:
            await self._redis.publish(topic, message)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("[Push] publish to %s failed", topic)

    async def listen(self, topic: str) -> AsyncIterator[Dict[str, Any]]:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(topic)
        try:
            async for raw in pubsub.listen():
                if raw.get("type") != "message":
                    continue
                yield json.loads(raw["data"])
        finally:
            await pubsub.unsubscribe(topic)
            await pubsub.aclose()

    async def close(self) -> None:
        await self._redis.aclose()


def build_push_channel(settings: Settings) -> PushChannel:
    if settings.REDIS_URL:
        return RedisPushChannel(settings.REDIS_URL)
    _LOGGER.info("REDIS_URL not set - realtime push limited to this process")
    return LocalPushChannel()
