import pytest

from social_hub.posts.models import Post
from social_hub.realtime import socketio as realtime_socketio
from social_hub.realtime.events import posts
from social_hub.realtime.events import social
from social_hub.realtime.events import stories


@pytest.fixture
def emitted(monkeypatch):
    calls = []

    async def fake_emit(event, data=None, **kwargs):
        calls.append((event, data, kwargs))

    monkeypatch.setattr(realtime_socketio.sio, "emit", fake_emit)
    return calls


def test_emit_event_broadcasts(emitted):
    realtime_socketio.emit_event("newPost", {"id": 1})
    assert emitted == [("newPost", {"id": 1}, {})]


def test_emit_event_to_user_targets_private_room(emitted):
    realtime_socketio.emit_event_to_user(7, "notification", {"type": "follow"})
    assert emitted == [("notification", {"type": "follow"}, {"room": "user_7"})]


@pytest.mark.django_db
def test_follow_broadcasts_and_notifies_target(emitted, django_user_model):
    follower = django_user_model.objects.create_user(
        username="fan",
        email="fan@example.com",
    )
    target = django_user_model.objects.create_user(
        username="star",
        email="star@example.com",
    )

    social.publish_user_followed(follower, target)

    assert emitted == [
        ("userFollowed", {"followerId": follower.pk, "userId": target.pk}, {}),
        (
            "notification",
            {
                "type": "follow",
                "message": "fan followed you",
                "fromUserId": follower.pk,
            },
            {"room": f"user_{target.pk}"},
        ),
    ]


def test_story_deleted_payload(emitted):
    stories.publish_story_deleted(3, 9)
    assert emitted == [("deleteStory", {"storyId": 3, "userId": 9}, {})]


def test_external_emitter_without_queue_uses_local_server(emitted, settings):
    settings.SOCKETIO_MESSAGE_QUEUE = ""
    emit = realtime_socketio.external_emitter()

    emit("deleteStory", {"storyId": 3, "userId": 9})

    assert emitted == [("deleteStory", {"storyId": 3, "userId": 9}, {})]


@pytest.mark.django_db
def test_post_payload_mirrors_the_api(emitted, django_user_model):
    author = django_user_model.objects.create_user(
        username="author",
        email="author@example.com",
    )
    post = Post.objects.create(
        user=author,
        caption="Hi",
        image_url="https://media.example.com/hi.png",
    )

    posts.publish_post_created(post)

    ((event, payload, kwargs),) = emitted
    assert event == "newPost"
    assert kwargs == {}
    assert payload["id"] == post.pk
    assert payload["user"]["username"] == "author"
    assert payload["likes"] == []


def test_server_accepts_handshake_so_auth_error_can_be_delivered():
    assert realtime_socketio.sio.always_connect is True
