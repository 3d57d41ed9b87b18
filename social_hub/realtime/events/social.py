from __future__ import annotations

from typing import TYPE_CHECKING

from social_hub.realtime.socketio import emit_event
from social_hub.realtime.socketio import emit_event_to_user

if TYPE_CHECKING:  # import for type checking only
    from social_hub.users.models import User


def publish_user_followed(follower: User, target: User) -> None:
    """Tell everyone about the follow and notify the followed user."""

    emit_event("userFollowed", {"followerId": follower.pk, "userId": target.pk})
    emit_event_to_user(
        target.pk,
        "notification",
        {
            "type": "follow",
            "message": f"{follower} followed you",
            "fromUserId": follower.pk,
        },
    )


def publish_user_unfollowed(follower: User, target: User) -> None:
    emit_event("userUnfollowed", {"followerId": follower.pk, "userId": target.pk})


def publish_user_blocked(blocker: User, target: User) -> None:
    emit_event("userBlocked", {"blockerId": blocker.pk, "userId": target.pk})


def publish_user_unblocked(blocker: User, target: User) -> None:
    emit_event("userUnblocked", {"blockerId": blocker.pk, "userId": target.pk})
