from django.db import transaction
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from social_hub.posts.models import Post
from social_hub.realtime.events.posts import publish_post_created
from social_hub.realtime.events.posts import publish_post_updated

from .serializers import CommentSerializer
from .serializers import PostSerializer


@extend_schema_view(
    list=extend_schema(tags=["Posts"]),
    retrieve=extend_schema(tags=["Posts"]),
    create=extend_schema(tags=["Posts"]),
    like=extend_schema(tags=["Posts"], request=None),
    comment=extend_schema(tags=["Posts"], request=CommentSerializer),
)
class PostViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    GenericViewSet,
):
    """Feed of posts, newest first.

    - create: publish a post for request.user (``newPost``)
    - like: toggle request.user's like (``postUpdated``)
    - comment: add a comment by request.user (``postUpdated``)
    """

    serializer_class = PostSerializer

    def get_queryset(self):
        return Post.objects.select_related("user").prefetch_related(
            "likes",
            "comments__user",
        )

    def perform_create(self, serializer):
        post = serializer.save(user=self.request.user)
        transaction.on_commit(lambda: publish_post_created(self._fresh(post)))

    @action(detail=True, methods=["post"])
    def like(self, request, pk=None):
        post = self.get_object()
        post.toggle_like(request.user)
        fresh = self._fresh(post)
        transaction.on_commit(lambda: publish_post_updated(fresh))
        return Response(PostSerializer(fresh, context={"request": request}).data)

    @action(detail=True, methods=["post"])
    def comment(self, request, pk=None):
        post = self.get_object()
        serializer = CommentSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        comment = serializer.save(post=post, user=request.user)
        transaction.on_commit(lambda: publish_post_updated(self._fresh(post)))
        return Response(
            {"comment": CommentSerializer(comment).data},
            status=status.HTTP_201_CREATED,
        )

    def _fresh(self, post: Post) -> Post:
        return self.get_queryset().get(pk=post.pk)
