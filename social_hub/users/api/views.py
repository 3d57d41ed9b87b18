import logging

from django.db import transaction
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.exceptions import ValidationError
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from social_hub.realtime.events.social import publish_user_blocked
from social_hub.realtime.events.social import publish_user_followed
from social_hub.realtime.events.social import publish_user_unblocked
from social_hub.realtime.events.social import publish_user_unfollowed
from social_hub.users.models import User

from .serializers import UserSerializer

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(tags=["Users"]),
    retrieve=extend_schema(tags=["Users"]),
    me=extend_schema(tags=["Users"]),
    follow=extend_schema(tags=["Users"], request=None),
    unfollow=extend_schema(tags=["Users"], request=None),
    block=extend_schema(tags=["Users"], request=None),
    unblock=extend_schema(tags=["Users"], request=None),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, GenericViewSet):
    """Accounts plus the follow/block relations between them.

    Every relation change is broadcast over Socket.IO once the transaction
    commits.
    """

    serializer_class = UserSerializer
    queryset = User.objects.filter(is_active=True).prefetch_related(
        "followers",
        "following",
    )
    pagination_class = None

    @action(detail=False)
    def me(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)

    def _get_target(self, verb: str) -> User:
        target = self.get_object()
        if target.pk == self.request.user.pk:
            msg = f"Cannot {verb} yourself."
            raise ValidationError({"detail": msg})
        return target

    @action(detail=True, methods=["post"])
    def follow(self, request, pk=None):
        target = self._get_target("follow")
        me = request.user
        if target.has_blocked(me):
            msg = "Cannot follow a user who has blocked you."
            raise PermissionDenied(msg)
        me.following.add(target)
        logger.info("User %s followed %s", me.pk, target.pk)
        transaction.on_commit(lambda: publish_user_followed(me, target))
        return Response({"detail": "Followed successfully."})

    @action(detail=True, methods=["post"])
    def unfollow(self, request, pk=None):
        target = self._get_target("unfollow")
        me = request.user
        me.following.remove(target)
        logger.info("User %s unfollowed %s", me.pk, target.pk)
        transaction.on_commit(lambda: publish_user_unfollowed(me, target))
        return Response({"detail": "Unfollowed successfully."})

    @action(detail=True, methods=["post"])
    def block(self, request, pk=None):
        target = self._get_target("block")
        me = request.user
        with transaction.atomic():
            if not me.has_blocked(target):
                me.blocked_users.add(target)
                # Blocking also drops the blocker's follow of the target.
                me.following.remove(target)
        logger.info("User %s blocked %s", me.pk, target.pk)
        transaction.on_commit(lambda: publish_user_blocked(me, target))
        return Response({"detail": "Blocked successfully."})

    @action(detail=True, methods=["post"])
    def unblock(self, request, pk=None):
        target = self._get_target("unblock")
        me = request.user
        me.blocked_users.remove(target)
        logger.info("User %s unblocked %s", me.pk, target.pk)
        transaction.on_commit(lambda: publish_user_unblocked(me, target))
        return Response({"detail": "Unblocked successfully."})
