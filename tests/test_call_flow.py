"""Blocking over the REST API is honoured by the call signaling socket."""

from unittest import mock

import pytest
from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from social_hub.realtime.namespace import SignalingNamespace
from social_hub.realtime.presence import PresenceRegistry
from tests.fake_socket import FakeServer

pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def alice(django_user_model):
    return django_user_model.objects.create_user(
        username="alice",
        email="alice@example.com",
        password="AlicePass!123",  # noqa: S106
    )


@pytest.fixture
def bob(django_user_model):
    return django_user_model.objects.create_user(
        username="bob",
        email="bob@example.com",
        password="BobPass!123",  # noqa: S106
    )


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def namespace(server):
    ns = SignalingNamespace("/", registry=PresenceRegistry(broadcast=server.emit))
    ns.server = server
    return ns


def join(namespace, server, sid, user):
    server.connect(sid)
    token = str(AccessToken.for_user(user))
    async_to_sync(namespace.on_connect)(sid, {}, {"token": token})
    async_to_sync(namespace.trigger_event)("addUser", sid, str(user.pk))


def call(namespace, caller, callee, sid):
    payload = {"to": str(callee.pk), "from": str(caller.pk), "offer": {"sdp": "v=0"}}
    async_to_sync(namespace.trigger_event)("callUser", sid, payload)


def test_call_between_online_users_is_relayed(namespace, server, alice, bob):
    join(namespace, server, "sa", alice)
    join(namespace, server, "sb", bob)
    server.received.clear()

    call(namespace, alice, bob, "sa")

    assert server.received["sb"] == [
        ("callUser", {"from": str(alice.pk), "offer": {"sdp": "v=0"}}),
    ]
    assert server.received["sa"] == []


def test_call_with_zero_padded_target_reaches_the_account(namespace, server, alice, bob):
    join(namespace, server, "sa", alice)
    join(namespace, server, "sb", bob)
    server.received.clear()

    payload = {"to": f"0{bob.pk}", "from": str(alice.pk), "offer": {}}
    async_to_sync(namespace.trigger_event)("callUser", "sa", payload)

    assert [event for event, _ in server.received["sb"]] == ["callUser"]
    assert server.received["sa"] == []


def test_block_refuses_later_calls(namespace, server, alice, bob):
    join(namespace, server, "sa", alice)
    join(namespace, server, "sb", bob)

    api = APIClient()
    api.force_authenticate(user=bob)
    with mock.patch("social_hub.users.api.views.publish_user_blocked"):
        r = api.post(f"/api/v1/users/{alice.pk}/block/")
    assert r.status_code == status.HTTP_200_OK, r.data
    server.received.clear()

    call(namespace, alice, bob, "sa")

    assert server.received["sa"] == [
        ("callError", {"message": "You are blocked by this user"}),
    ]
    assert server.received["sb"] == []


def test_blocker_can_still_call(namespace, server, alice, bob):
    join(namespace, server, "sa", alice)
    join(namespace, server, "sb", bob)
    bob.blocked_users.add(alice)
    server.received.clear()

    call(namespace, bob, alice, "sb")

    assert [event for event, _ in server.received["sa"]] == ["callUser"]


def test_deactivated_user_gets_auth_error(namespace, server, alice):
    token = str(AccessToken.for_user(alice))
    alice.is_active = False
    alice.save(update_fields=["is_active"])
    server.connect("sa")

    async_to_sync(namespace.on_connect)("sa", {}, {"token": token})

    assert server.received["sa"] == [
        ("authError", {"message": "Invalid or expired token"}),
        ("disconnect", None),
    ]
    assert "sa" not in server.sessions
