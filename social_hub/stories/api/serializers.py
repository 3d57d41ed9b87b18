from rest_framework import serializers

from social_hub.stories.models import Story
from social_hub.users.api.serializers import UserSummarySerializer


class StorySerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    expires_at = serializers.DateTimeField(read_only=True)

    class Meta:
        model = Story
        fields = ["id", "user", "url", "file_type", "created_at", "expires_at"]
        read_only_fields = ["id", "created_at"]
