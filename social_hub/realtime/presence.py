"""Registry of identities holding an open, registered realtime connection.

One registry is built when the ASGI application starts and is handed to the
connection handlers. Nothing else should touch its storage: every change goes
through ``register``/``remove`` so concurrent connects and disconnects are
serialized and each change is followed by a ``getOnlineUsers`` snapshot
broadcast.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Awaitable
    from collections.abc import Callable

    Broadcast = Callable[[str, Any], Awaitable[Any]]

logger = logging.getLogger(__name__)

ONLINE_USERS_EVENT = "getOnlineUsers"


class PresenceRegistry:
    """Set of online identities, insertion ordered.

    ``broadcast`` is an awaitable ``(event, data)`` callable that reaches every
    connection, usually ``AsyncServer.emit``. It is awaited outside the lock
    with a snapshot taken inside it.
    """

    def __init__(self, broadcast: Broadcast | None = None):
        self._broadcast = broadcast
        # dict keeps insertion order, values unused
        self._online: dict[str, None] = {}
        self._lock = asyncio.Lock()

    async def register(self, identity: str) -> bool:
        """Mark ``identity`` online. Returns False when it already was."""
        async with self._lock:
            if identity in self._online:
                return False
            self._online[identity] = None
            snapshot = list(self._online)
        logger.info("User %s is online (%d online)", identity, len(snapshot))
        await self._publish(snapshot)
        return True

    async def remove(self, identity: str) -> bool:
        """Mark ``identity`` offline. Removing an absent identity is a no-op."""
        async with self._lock:
            if identity not in self._online:
                return False
            del self._online[identity]
            snapshot = list(self._online)
        logger.info("User %s went offline (%d online)", identity, len(snapshot))
        await self._publish(snapshot)
        return True

    def is_online(self, identity: str) -> bool:
        return identity in self._online

    def snapshot(self) -> list[str]:
        return list(self._online)

    async def clear(self) -> None:
        """Drop every entry without broadcasting (server shutdown)."""
        async with self._lock:
            self._online.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._online

    def __len__(self) -> int:
        return len(self._online)

    async def _publish(self, snapshot: list[str]) -> None:
        if self._broadcast is None:
            return
        await self._broadcast(ONLINE_USERS_EVENT, snapshot)
