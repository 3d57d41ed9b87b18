"""Socket.IO namespace carrying presence and call signaling.

The namespace only does I/O: it verifies the handshake token, loads the
target account for call offers and executes the effects returned by
``signaling.handle``. Connection state lives in the Socket.IO session. A
handshake with a bad token is accepted just long enough to deliver one
``authError`` before the socket is disconnected.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any
from urllib.parse import parse_qs

import socketio

from social_hub.realtime import signaling
from social_hub.realtime.accounts import get_account as default_get_account
from social_hub.realtime.accounts import verify_token as default_verify_token
from social_hub.realtime.exceptions import AuthenticationFailure
from social_hub.realtime.signaling import Close
from social_hub.realtime.signaling import Connection
from social_hub.realtime.signaling import Emit
from social_hub.realtime.signaling import Event
from social_hub.realtime.signaling import JoinRoom
from social_hub.realtime.signaling import Register
from social_hub.realtime.signaling import Unregister

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Awaitable
    from collections.abc import Callable

    from social_hub.realtime.presence import PresenceRegistry
    from social_hub.realtime.signaling import Account
    from social_hub.realtime.signaling import Effect

logger = logging.getLogger(__name__)


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract the JWT access token from the Socket.IO handshake.

    ``auth: { token }`` is preferred; ``?token=`` in the query string is
    accepted for clients that cannot send an auth payload. Handles
    python-socketio environ shapes across ASGI/WSGI servers.
    """
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token
    return None


class SignalingNamespace(socketio.AsyncNamespace):
    def __init__(
        self,
        namespace: str | None = None,
        *,
        registry: PresenceRegistry,
        verify_token: Callable[[str | None], Awaitable[str]] = default_verify_token,
        get_account: Callable[[str], Awaitable[Account | None]] = default_get_account,
    ):
        super().__init__(namespace)
        self.registry = registry
        self._verify_token = verify_token
        self._get_account = get_account

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None):
        token = extract_token(environ, auth)
        try:
            identity = await self._verify_token(token)
        except AuthenticationFailure:
            identity = None
        except Exception:
            logger.exception("Socket.IO connect error")
            identity = None

        connection, effects = signaling.handle(
            Event(signaling.CONNECT, identity),
            Connection(sid=sid),
        )
        if not connection.is_open:
            # Nothing is saved, so later events from this sid are ignored.
            logger.info("Refused socket %s: invalid or expired token", sid)
            await self._apply(connection, effects)
            return
        await self._save(connection)
        await self._apply(connection, effects)
        logger.info("User %s connected on %s", connection.identity, sid)

    async def on_disconnect(self, sid: str, reason: Any = None):
        connection = await self._load(sid)
        if connection is None:
            return
        connection, effects = signaling.handle(Event(signaling.DISCONNECT), connection)
        await self._save(connection)
        await self._apply(connection, effects)
        logger.info("User %s disconnected from %s (%s)", connection.identity, sid, reason)

    async def trigger_event(self, event: str, *args):
        if event in signaling.CLIENT_EVENTS:
            sid, *rest = args
            await self.dispatch(sid, Event(event, rest[0] if rest else None))
            return None
        return await super().trigger_event(event, *args)

    async def dispatch(self, sid: str, event: Event) -> list[Effect]:
        """Run one client event through the state machine and apply it."""
        connection = await self._load(sid)
        if connection is None:
            return []

        target = None
        lookup = signaling.lookup_identity(event, connection)
        if lookup is not None:
            try:
                target = await self._get_account(lookup)
            except Exception:
                logger.exception("Account lookup for %s failed", lookup)
                failure = signaling.call_error(connection, signaling.FAILED_TO_INITIATE)
                await self._apply(connection, [failure])
                return [failure]

        new_connection, effects = signaling.handle(
            event,
            connection,
            online=self.registry,
            target=target,
        )
        if new_connection != connection:
            await self._save(new_connection)
        await self._apply(new_connection, effects)
        return effects

    async def _apply(self, connection: Connection, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Emit):
                await self.emit(
                    effect.event,
                    effect.data,
                    room=effect.room,
                    skip_sid=effect.skip_sid,
                )
            elif isinstance(effect, JoinRoom):
                await self.enter_room(connection.sid, effect.room)
            elif isinstance(effect, Register):
                await self.registry.register(effect.identity)
            elif isinstance(effect, Unregister):
                await self.registry.remove(effect.identity)
            elif isinstance(effect, Close):
                await self.disconnect(connection.sid)

    async def _load(self, sid: str) -> Connection | None:
        try:
            session = await self.get_session(sid)
        except KeyError:
            return None
        connection = session.get("connection") if isinstance(session, dict) else None
        return connection if isinstance(connection, Connection) else None

    async def _save(self, connection: Connection) -> None:
        await self.save_session(connection.sid, {"connection": connection})
