from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from social_hub.realtime.socketio import emit_event
from social_hub.stories.api.serializers import StorySerializer

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Callable

    from social_hub.stories.models import Story


def publish_story_created(story: Story) -> None:
    emit_event("newStory", dict(StorySerializer(story).data))


def publish_story_deleted(
    story_id: int,
    user_id: int,
    *,
    emit: Callable[[str, Any], None] = emit_event,
) -> None:
    # Takes ids: the row is gone by the time this runs.
    emit("deleteStory", {"storyId": story_id, "userId": user_id})
