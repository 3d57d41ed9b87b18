from django.db import transaction
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework.exceptions import PermissionDenied
from rest_framework.viewsets import GenericViewSet

from social_hub.realtime.events.stories import publish_story_created
from social_hub.realtime.events.stories import publish_story_deleted
from social_hub.stories.models import Story

from .serializers import StorySerializer


@extend_schema_view(
    list=extend_schema(tags=["Stories"]),
    create=extend_schema(tags=["Stories"]),
    destroy=extend_schema(tags=["Stories"]),
)
class StoryViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    """Stories that have not expired yet. Only the author may delete one."""

    serializer_class = StorySerializer
    pagination_class = None

    def get_queryset(self):
        return Story.objects.live().select_related("user")

    def perform_create(self, serializer):
        story = serializer.save(user=self.request.user)
        transaction.on_commit(lambda: publish_story_created(story))

    def perform_destroy(self, instance):
        if instance.user_id != self.request.user.pk:
            msg = "You can only delete your own stories."
            raise PermissionDenied(msg)
        story_id, user_id = instance.pk, instance.user_id
        instance.delete()
        transaction.on_commit(lambda: publish_story_deleted(story_id, user_id))
