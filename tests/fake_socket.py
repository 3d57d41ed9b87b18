"""In-memory stand-in for ``socketio.AsyncServer``.

Records what every connection receives so whole socket flows can be replayed
without a network.
"""

from __future__ import annotations

from collections import defaultdict


class FakeServer:
    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.rooms: dict[str, set[str]] = defaultdict(set)
        self.received: dict[str, list[tuple]] = defaultdict(list)

    def connect(self, sid: str) -> None:
        self.rooms[sid].add(sid)

    def drop(self, sid: str) -> None:
        self.sessions.pop(sid, None)
        for members in self.rooms.values():
            members.discard(sid)

    @property
    def connected(self) -> set[str]:
        return {sid for members in self.rooms.values() for sid in members}

    async def emit(self, event, data=None, to=None, room=None, skip_sid=None, **kwargs):
        target = to or room
        recipients = self.connected if target is None else set(self.rooms.get(target, ()))
        for sid in recipients - {skip_sid}:
            self.received[sid].append((event, data))

    async def disconnect(self, sid, namespace=None, **kwargs):
        self.received[sid].append(("disconnect", None))
        self.drop(sid)

    async def enter_room(self, sid, room, namespace=None):
        self.rooms[room].add(sid)

    async def get_session(self, sid, namespace=None):
        if sid not in self.sessions:
            msg = "Session not found"
            raise KeyError(msg)
        return self.sessions[sid]

    async def save_session(self, sid, session, namespace=None):
        self.sessions[sid] = session

