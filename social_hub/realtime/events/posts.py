from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from social_hub.posts.api.serializers import PostSerializer
from social_hub.realtime.socketio import emit_event

if TYPE_CHECKING:  # import for type checking only
    from social_hub.posts.models import Post


def build_post_payload(post: Post) -> dict[str, Any]:
    return dict(PostSerializer(post).data)


def publish_post_created(post: Post) -> None:
    emit_event("newPost", build_post_payload(post))


def publish_post_updated(post: Post) -> None:
    """Broadcast the post after a like toggle or a new comment."""

    emit_event("postUpdated", build_post_payload(post))
