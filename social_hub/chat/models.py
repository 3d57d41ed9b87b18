from django.conf import settings
from django.db import models
from django.db.models import Q


class MessageQuerySet(models.QuerySet):
    def conversation(self, user_a, user_b):
        """Messages exchanged between two users, oldest first."""
        return self.filter(
            Q(sender=user_a, receiver=user_b) | Q(sender=user_b, receiver=user_a),
        ).order_by("timestamp", "id")


class Message(models.Model):
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
    )
    message = models.TextField()
    timestamp = models.DateTimeField(auto_now_add=True)

    objects = MessageQuerySet.as_manager()

    class Meta:
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.sender} -> {self.receiver}"
