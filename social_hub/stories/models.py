from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


def story_ttl() -> timedelta:
    return timedelta(hours=settings.STORY_TTL_HOURS)


class StoryQuerySet(models.QuerySet):
    def live(self, now=None):
        now = now or timezone.now()
        return self.filter(created_at__gt=now - story_ttl())

    def expired(self, now=None):
        now = now or timezone.now()
        return self.filter(created_at__lte=now - story_ttl())


class Story(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="stories",
    )
    url = models.URLField(max_length=500)
    # MIME type of the media, e.g. "image/jpeg" or "video/mp4"
    file_type = models.CharField(max_length=100)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = StoryQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "stories"

    def __str__(self):
        return f"Story {self.pk} by {self.user}"

    @property
    def expires_at(self):
        return self.created_at + story_ttl()
