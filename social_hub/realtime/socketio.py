"""Global Socket.IO server for the frontend.

One server carries presence, call signaling and the broadcast events published
by the REST API (new posts, follows, stories, ...).

Frontend convention:
- URL base: ws://<host>:8000
- Socket.IO path: ``settings.SOCKETIO_PATH`` (``/ws/socket.io/``)
- Auth: ``auth.token`` (JWT access token), ``query.token`` as fallback

When ``settings.SOCKETIO_MESSAGE_QUEUE`` is set, emits travel through Redis
pub/sub so every ASGI worker and the Celery workers reach the same clients.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

import socketio
from asgiref.sync import async_to_sync
from django.conf import settings

from social_hub.realtime.namespace import SignalingNamespace
from social_hub.realtime.presence import PresenceRegistry
from social_hub.realtime.signaling import room_for_user

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def _client_manager() -> socketio.AsyncRedisManager | None:
    url = settings.SOCKETIO_MESSAGE_QUEUE
    if not url:
        return None
    return socketio.AsyncRedisManager(url)


sio = socketio.AsyncServer(
    async_mode="asgi",
    client_manager=_client_manager(),
    cors_allowed_origins=settings.SOCKETIO_CORS_ALLOWED_ORIGINS,
    # Accept the handshake before the connect handler runs, so a client with
    # a bad token can still be sent authError before it is disconnected.
    always_connect=True,
    # Run each client's events in arrival order.
    async_handlers=False,
    logger=False,
    engineio_logger=False,
)


def build_realtime(server: socketio.AsyncServer = sio) -> PresenceRegistry:
    """Create the presence registry and attach the signaling handlers.

    Called once per process when the ASGI application is built.
    """
    registry = PresenceRegistry(broadcast=server.emit)
    server.register_namespace(SignalingNamespace("/", registry=registry))
    logger.info("Socket.IO signaling namespace registered")
    return registry


def emit_event(event: str, payload: Any) -> None:
    """Broadcast an event to every connection from sync Django code."""

    async_to_sync(sio.emit)(event, payload)


def emit_event_to_room(room: str, event: str, payload: Any) -> None:
    """Emit an event to a room from sync Django code."""

    async_to_sync(sio.emit)(event, payload, room=room)


def emit_event_to_user(user_id: int | str, event: str, payload: Any) -> None:
    emit_event_to_room(room_for_user(str(user_id)), event, payload)


def external_emitter() -> Callable[[str, Any], None]:
    """Return a broadcast function for processes that serve no sockets.

    Celery workers publish on the message queue the ASGI workers listen on.
    Without a queue only this process's own server can be reached.
    """
    url = settings.SOCKETIO_MESSAGE_QUEUE
    if not url:
        return emit_event
    manager = socketio.RedisManager(url, write_only=True)

    def emit(event: str, payload: Any) -> None:
        manager.emit(event, payload, namespace="/")

    return emit
