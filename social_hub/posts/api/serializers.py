from rest_framework import serializers

from social_hub.posts.models import Comment
from social_hub.posts.models import Post
from social_hub.users.api.serializers import UserSummarySerializer


class CommentSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "user", "text", "created_at"]
        read_only_fields = ["id", "user", "created_at"]


class PostSerializer(serializers.ModelSerializer):
    """Post with author, like ids and comments, newest comments last."""

    user = UserSummarySerializer(read_only=True)
    likes = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    comments = CommentSerializer(many=True, read_only=True)

    class Meta:
        model = Post
        fields = ["id", "user", "caption", "image_url", "likes", "comments", "created_at"]
        read_only_fields = ["id", "created_at"]
