from rest_framework import serializers

from social_hub.users.models import User


class UserSummarySerializer(serializers.ModelSerializer[User]):
    """Author block embedded in posts, comments and stories."""

    class Meta:
        model = User
        fields = ["id", "username", "name", "profile_image"]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer[User]):
    id = serializers.IntegerField(read_only=True)
    followers = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    following = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    is_following = serializers.SerializerMethodField()
    is_blocked = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "email",
            "number",
            "age",
            "gender",
            "location",
            "profile_image",
            "followers",
            "following",
            "is_following",
            "is_blocked",
        ]
        read_only_fields = ["username", "email"]

    def _requester(self) -> User | None:
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        return user

    def get_is_following(self, obj: User) -> bool:
        requester = self._requester()
        if requester is None or requester.pk == obj.pk:
            return False
        return requester.is_following(obj)

    def get_is_blocked(self, obj: User) -> bool:
        requester = self._requester()
        if requester is None or requester.pk == obj.pk:
            return False
        return requester.has_blocked(obj)
