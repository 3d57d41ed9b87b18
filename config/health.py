"""Health endpoint for the load balancer and the frontend status banner.

Reports three components:

- ``db``: a round trip to the database.
- ``queue``: a ping of the Redis instance behind Celery and the Socket.IO
  message queue.
- ``realtime``: whether the signaling namespace is mounted in this process,
  with the number of users currently online.

The endpoint answers 200 only when every component is ok.
"""

from __future__ import annotations

from typing import Any

import redis
from django.conf import settings
from django.db import connection
from django.db import transaction
from django.http import JsonResponse

from social_hub.realtime.namespace import SignalingNamespace
from social_hub.realtime.socketio import sio


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    return {"ok": True}


def check_queue() -> dict[str, Any]:
    url = settings.SOCKETIO_MESSAGE_QUEUE or settings.CELERY_BROKER_URL
    try:
        redis.Redis.from_url(
            url,
            socket_timeout=0.5,
            socket_connect_timeout=0.5,
        ).ping()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    return {"ok": True, "shared": bool(settings.SOCKETIO_MESSAGE_QUEUE)}


def check_realtime() -> dict[str, Any]:
    handler = sio.namespace_handlers.get("/")
    if not isinstance(handler, SignalingNamespace):
        return {"ok": False, "error": "signaling namespace not mounted"}
    return {"ok": True, "online": len(handler.registry)}


# No request transaction: a dead database must still produce a report.
@transaction.non_atomic_requests
def health(request):
    components = {
        "db": check_db(),
        "queue": check_queue(),
        "realtime": check_realtime(),
    }
    results = [component["ok"] for component in components.values()]

    if all(results):
        status = "ok"
    elif any(results):
        status = "degraded"
    else:
        status = "down"

    return JsonResponse(
        {"status": status, "components": components},
        status=200 if status == "ok" else 503,
    )
