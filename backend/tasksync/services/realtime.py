"""
Realtime fan-out over WebSockets.

Two hubs live in the API process:
- TaskEventHub: every authenticated /ws/tasks socket receives every
  task:* event. Best effort, at most once, no replay.
- NotificationHub: /ws/notifications sockets keyed by user id. The arq
  worker creates notifications in a separate process and publishes them on
  a Redis channel; relay_notifications() forwards them to the right user.
"""

import asyncio
import enum
import json
import uuid
from typing import Any

import redis.asyncio as aioredis
from fastapi import WebSocket

from tasksync.config import get_settings
from tasksync.logging_config import get_logger

logger = get_logger(__name__)


class TaskEvent(str, enum.Enum):
    CREATED = "task:created"
    UPDATED = "task:updated"
    REASSIGNED = "task:reassigned"
    DELETED = "task:deleted"


class TaskEventHub:
    """Broadcasts task change events to every connected client."""

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.debug(f"Task socket connected ({len(self._connections)} open)")

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)

    async def emit(self, event: TaskEvent, task_id: uuid.UUID) -> None:
        payload = {"event": TaskEvent(event).value, "task_id": str(task_id)}
        for websocket in list(self._connections):
            try:
                await websocket.send_json(payload)
            except Exception as e:
                logger.warning(f"Dropping task socket after failed send: {e}")
                self.disconnect(websocket)


class NotificationHub:
    """Pushes notifications to the sockets of the user they belong to."""

    def __init__(self) -> None:
        self._sockets: dict[uuid.UUID, set[WebSocket]] = {}

    def is_connected(self, user_id: uuid.UUID) -> bool:
        return bool(self._sockets.get(user_id))

    async def connect(
        self,
        user_id: uuid.UUID,
        websocket: WebSocket,
        backlog: list[dict[str, Any]],
    ) -> None:
        """Register a socket and send the user's unread notifications."""
        await websocket.accept()
        self._sockets.setdefault(user_id, set()).add(websocket)
        await websocket.send_json({"event": "notifications", "data": backlog})

    def disconnect(self, user_id: uuid.UUID, websocket: WebSocket) -> None:
        sockets = self._sockets.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._sockets[user_id]

    async def send(self, user_id: uuid.UUID, notification: dict[str, Any]) -> int:
        """Deliver to every socket of user_id; returns how many got it."""
        delivered = 0
        for websocket in list(self._sockets.get(user_id, ())):
            try:
                await websocket.send_json({"event": "notification", "data": notification})
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping notification socket of user {user_id}: {e}")
                self.disconnect(user_id, websocket)
        return delivered

    async def dispatch(self, raw_message: str | bytes) -> None:
        """Route one message published by the worker."""
        try:
            notification = json.loads(raw_message)
            user_id = uuid.UUID(notification["user_id"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed notification message: {e}")
            return
        await self.send(user_id, notification)


task_events = TaskEventHub()
notification_hub = NotificationHub()


async def relay_notifications(hub: NotificationHub) -> None:
    """
    Forward worker-published notifications to connected sockets.

    Runs for the lifetime of the API process; the subscription is
    re-established after Redis connection errors.
    """
    settings = get_settings()

    while True:
        client = aioredis.from_url(settings.redis_url)
        try:
            async with client.pubsub() as pubsub:
                await pubsub.subscribe(settings.notification_channel)
                logger.info(f"Relaying notifications from '{settings.notification_channel}'")
                async for message in pubsub.listen():
                    if message.get("type") != "message":
                        continue
                    await hub.dispatch(message["data"])
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Notification relay lost Redis connection: {e}")
            await asyncio.sleep(5)
        finally:
            await client.aclose()
