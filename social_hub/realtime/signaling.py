"""Call signaling state machine.

A connection moves through ``Connecting -> Authenticated -> Registered ->
Closed``. ``handle`` is the single entry point: it takes an inbound event and
the current connection, and returns the next connection plus a list of
effects (emits, room joins, presence changes) for the socket layer to carry
out. No I/O happens here, so the checks below can be exercised without a
live socket.

Relay rules:

- ``callUser`` (the offer) is checked in order: the claimed ``from`` must be
  the bound identity, the target account must exist, the target must not
  have blocked the caller, and the target must be online. Each failure is
  reported to the caller with ``callError``.
- ``answerCall``, ``iceCandidate``, ``endCall`` and ``rejectCall`` are only
  forwarded when the target is online and are dropped silently otherwise.
  They skip the account and block checks, so a blocked user can still answer
  or hang up on the user who blocked them.

Nothing is remembered between events: there is no call session, no queue for
offline targets and no timeout on an unanswered offer.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from typing import TYPE_CHECKING
from typing import Any

from social_hub.realtime.exceptions import AuthenticationFailure
from social_hub.realtime.exceptions import AuthorizationFailure
from social_hub.realtime.exceptions import Forbidden
from social_hub.realtime.exceptions import NotFound
from social_hub.realtime.exceptions import RealtimeError
from social_hub.realtime.exceptions import Unavailable

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Container

logger = logging.getLogger(__name__)

# Lifecycle events, raised by the socket layer.
CONNECT = "connect"
DISCONNECT = "disconnect"

# Client -> server
ADD_USER = "addUser"
CALL_USER = "callUser"
ANSWER_CALL = "answerCall"
ICE_CANDIDATE = "iceCandidate"
END_CALL = "endCall"
REJECT_CALL = "rejectCall"

# Server -> client
AUTH_ERROR = "authError"
CALL_ACCEPTED = "callAccepted"
CALL_ENDED = "callEnded"
CALL_REJECTED = "callRejected"
CALL_ERROR = "callError"

FAILED_TO_INITIATE = "Failed to initiate call"


class SignalKind(enum.Enum):
    OFFER = "offer"
    ANSWER = "answer"
    ICE_CANDIDATE = "candidate"
    END = "end"
    REJECT = "reject"


# inbound event -> (kind, outbound event, body field)
_SIGNALS: dict[str, tuple[SignalKind, str, str | None]] = {
    CALL_USER: (SignalKind.OFFER, CALL_USER, "offer"),
    ANSWER_CALL: (SignalKind.ANSWER, CALL_ACCEPTED, "answer"),
    ICE_CANDIDATE: (SignalKind.ICE_CANDIDATE, ICE_CANDIDATE, "candidate"),
    END_CALL: (SignalKind.END, CALL_ENDED, None),
    REJECT_CALL: (SignalKind.REJECT, CALL_REJECTED, None),
}

CLIENT_EVENTS = frozenset({ADD_USER, *_SIGNALS})


class ConnectionState(enum.Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    REGISTERED = "registered"
    CLOSED = "closed"


@dataclass(frozen=True)
class Connection:
    sid: str
    identity: str | None = None
    state: ConnectionState = ConnectionState.CONNECTING

    @property
    def is_open(self) -> bool:
        return self.state in {
            ConnectionState.AUTHENTICATED,
            ConnectionState.REGISTERED,
        }


@dataclass(frozen=True)
class Account:
    """What the relay needs to know about a target user."""

    identity: str
    blocked_users: frozenset[str] = field(default_factory=frozenset)

    def has_blocked(self, identity: str | None) -> bool:
        return identity is not None and identity in self.blocked_users


@dataclass(frozen=True)
class Event:
    name: str
    data: Any = None


@dataclass(frozen=True)
class Signal:
    """Envelope of one relayed call event. Never stored."""

    sender: str | None
    recipient: str | None
    kind: SignalKind
    body: Any = None


# Effects


@dataclass(frozen=True)
class Emit:
    event: str
    data: Any = None
    # ``None`` broadcasts to every connection
    room: str | None = None
    skip_sid: str | None = None


@dataclass(frozen=True)
class JoinRoom:
    room: str


@dataclass(frozen=True)
class Register:
    identity: str


@dataclass(frozen=True)
class Unregister:
    identity: str


@dataclass(frozen=True)
class Close:
    """Disconnect the socket after the preceding effects were sent."""


Effect = Emit | JoinRoom | Register | Unregister | Close


def room_for_user(identity: str) -> str:
    return f"user_{identity}"


def normalize_identity(value: Any) -> str | None:
    """Coerce a client supplied identity to the registry's string form."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value or None
    return None


def call_error(connection: Connection, message: str) -> Emit:
    return Emit(CALL_ERROR, {"message": message}, room=connection.sid)


def parse_signal(event: Event) -> Signal | None:
    route = _SIGNALS.get(event.name)
    if route is None:
        return None
    kind, _, body_field = route
    data = event.data if isinstance(event.data, dict) else {}
    return Signal(
        sender=normalize_identity(data.get("from")),
        recipient=normalize_identity(data.get("to")),
        kind=kind,
        body=data.get(body_field) if body_field else None,
    )


def lookup_identity(event: Event, connection: Connection) -> str | None:
    """Identity whose account must be loaded before ``handle`` runs.

    Only an authorized offer needs the target account; everything else is
    decided from the connection and the online set alone.
    """
    if event.name != CALL_USER or not connection.is_open:
        return None
    signal = parse_signal(event)
    if signal is None or signal.sender != connection.identity:
        return None
    return signal.recipient


def check_offer(
    signal: Signal,
    connection: Connection,
    *,
    online: Container[str],
    target: Account | None,
) -> None:
    """Raise the first failed check for a call offer."""
    if signal.sender is None or signal.sender != connection.identity:
        raise AuthorizationFailure
    if target is None or signal.recipient is None:
        raise NotFound
    if target.has_blocked(signal.sender):
        raise Forbidden
    if target.identity not in online:
        raise Unavailable


def handle(
    event: Event,
    connection: Connection,
    *,
    online: Container[str] = (),
    target: Account | None = None,
) -> tuple[Connection, list[Effect]]:
    """Apply ``event`` to ``connection``.

    ``online`` is the presence snapshot and ``target`` the account looked up
    for ``lookup_identity(event, connection)`` (``None`` when unknown).
    """
    if connection.state is ConnectionState.CLOSED:
        return connection, []

    if event.name == CONNECT:
        return _on_connect(event, connection)
    if event.name == DISCONNECT:
        return _on_disconnect(connection)

    if not connection.is_open:
        logger.debug("Dropping %s on unauthenticated %s", event.name, connection.sid)
        return connection, []

    if event.name == ADD_USER:
        return _on_add_user(event, connection)
    if event.name == CALL_USER:
        return connection, _on_offer(event, connection, online=online, target=target)
    if event.name in _SIGNALS:
        return connection, _on_relay(event, connection, online=online)

    logger.debug("Ignoring unknown event %s from %s", event.name, connection.sid)
    return connection, []


def _on_connect(event: Event, connection: Connection):
    if connection.state is not ConnectionState.CONNECTING:
        return connection, []
    identity = normalize_identity(event.data)
    if identity is None:
        closed = replace(connection, state=ConnectionState.CLOSED)
        notice = Emit(
            AUTH_ERROR,
            {"message": AuthenticationFailure.default_message},
            room=connection.sid,
        )
        return closed, [notice, Close()]
    authenticated = replace(
        connection,
        identity=identity,
        state=ConnectionState.AUTHENTICATED,
    )
    return authenticated, [JoinRoom(room_for_user(identity))]


def _on_disconnect(connection: Connection):
    effects: list[Effect] = []
    if connection.state is ConnectionState.REGISTERED and connection.identity:
        effects.append(Unregister(connection.identity))
    return replace(connection, state=ConnectionState.CLOSED), effects


def _on_add_user(event: Event, connection: Connection):
    identity = normalize_identity(event.data)
    if identity is None or identity != connection.identity:
        # Registering somebody else is ignored, not reported.
        logger.debug(
            "Ignoring addUser(%r) from %s bound to %s",
            event.data,
            connection.sid,
            connection.identity,
        )
        return connection, []
    registered = replace(connection, state=ConnectionState.REGISTERED)
    return registered, [Register(identity)]


def _on_offer(
    event: Event,
    connection: Connection,
    *,
    online: Container[str],
    target: Account | None,
) -> list[Effect]:
    signal = parse_signal(event)
    try:
        check_offer(signal, connection, online=online, target=target)
    except RealtimeError as exc:
        logger.info(
            "Call from %s to %s refused: %s",
            connection.identity,
            signal.recipient,
            exc.message,
        )
        return [call_error(connection, exc.message)]
    return [
        Emit(
            CALL_USER,
            {"from": connection.identity, "offer": signal.body},
            room=room_for_user(target.identity),
            skip_sid=connection.sid,
        )
    ]


def _on_relay(
    event: Event,
    connection: Connection,
    *,
    online: Container[str],
) -> list[Effect]:
    signal = parse_signal(event)
    if signal.recipient is None or signal.recipient not in online:
        logger.debug(
            "Dropping %s from %s: %s is offline",
            event.name,
            connection.identity,
            signal.recipient,
        )
        return []
    _, outbound, body_field = _SIGNALS[event.name]
    data = {body_field: signal.body} if body_field else None
    return [
        Emit(
            outbound,
            data,
            room=room_for_user(signal.recipient),
            skip_sid=connection.sid,
        )
    ]
