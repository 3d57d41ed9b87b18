from django.conf import settings
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from social_hub.chat.api.views import MessageViewSet
from social_hub.posts.api.views import PostViewSet
from social_hub.stories.api.views import StoryViewSet
from social_hub.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("posts", PostViewSet, basename="posts")
router.register("stories", StoryViewSet, basename="stories")
router.register("messages", MessageViewSet, basename="messages")


app_name = "api"
urlpatterns = router.urls
