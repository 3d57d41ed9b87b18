from django.contrib.auth import get_user_model
from rest_framework import serializers

from social_hub.chat.models import Message

User = get_user_model()


class MessageSerializer(serializers.ModelSerializer):
    sender = serializers.PrimaryKeyRelatedField(read_only=True)
    receiver = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True),
    )

    class Meta:
        model = Message
        fields = ["id", "sender", "receiver", "message", "timestamp"]
        read_only_fields = ["id", "timestamp"]
