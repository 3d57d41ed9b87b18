from django.contrib.auth import get_user_model
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework.exceptions import ValidationError
from rest_framework.viewsets import GenericViewSet

from social_hub.chat.models import Message

from .serializers import MessageSerializer

User = get_user_model()


@extend_schema_view(
    list=extend_schema(
        tags=["Messages"],
        parameters=[
            OpenApiParameter(
                "with",
                OpenApiTypes.INT,
                required=True,
                description="Id of the other participant.",
            ),
        ],
    ),
    create=extend_schema(tags=["Messages"]),
)
class MessageViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, GenericViewSet):
    """Direct messages of the authenticated user.

    - list: the conversation with ``?with=<user id>``, oldest first
    - create: send a message from request.user
    """

    serializer_class = MessageSerializer
    pagination_class = None

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False) or self.action != "list":
            return Message.objects.none()
        other = self.request.query_params.get("with", "").strip()
        if not other.isdigit():
            raise ValidationError({"with": "Must be a user id."})
        return Message.objects.conversation(self.request.user, int(other))

    def perform_create(self, serializer):
        serializer.save(sender=self.request.user)
