from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from social_hub.stories.models import Story
from social_hub.stories.tasks import purge_expired

pytestmark = pytest.mark.django_db


@pytest.fixture
def owner(django_user_model):
    return django_user_model.objects.create_user(
        username="owner",
        email="owner@example.com",
    )


def make_story(owner, age_hours):
    return Story.objects.create(
        user=owner,
        url="https://media.example.com/s.jpg",
        file_type="image/jpeg",
        created_at=timezone.now() - timedelta(hours=age_hours),
    )


def test_purge_expired_deletes_and_announces(owner):
    fresh = make_story(owner, 1)
    old = make_story(owner, 30)

    with mock.patch("social_hub.stories.tasks.publish_story_deleted") as publish:
        deleted = purge_expired.delay().get()

    assert deleted == 1
    assert list(Story.objects.all()) == [fresh]
    publish.assert_called_once_with(old.pk, owner.pk, emit=mock.ANY)


def test_purge_expired_nothing_to_do(owner):
    make_story(owner, 1)
    with mock.patch("social_hub.stories.tasks.publish_story_deleted") as publish:
        assert purge_expired() == 0
    publish.assert_not_called()


def test_ttl_follows_settings(owner, settings):
    story = make_story(owner, 5)
    settings.STORY_TTL_HOURS = 4
    assert not Story.objects.live().exists()
    assert story.expires_at == story.created_at + timedelta(hours=4)


def test_purge_expired_publishes_through_the_message_queue(owner, settings):
    settings.SOCKETIO_MESSAGE_QUEUE = "redis://queue:6379/2"
    old = make_story(owner, 30)

    with mock.patch("socketio.RedisManager") as manager_cls:
        assert purge_expired() == 1

    manager_cls.assert_called_once_with("redis://queue:6379/2", write_only=True)
    manager_cls.return_value.emit.assert_called_once_with(
        "deleteStory",
        {"storyId": old.pk, "userId": owner.pk},
        namespace="/",
    )
