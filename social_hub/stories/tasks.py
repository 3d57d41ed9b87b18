import logging

from celery import shared_task
from django.db import transaction

from social_hub.realtime.events.stories import publish_story_deleted
from social_hub.realtime.socketio import external_emitter
from social_hub.stories.models import Story

logger = logging.getLogger(__name__)


@shared_task(name="stories.purge_expired")
def purge_expired() -> int:
    """Delete stories older than ``STORY_TTL_HOURS`` and announce each removal.

    Returns:
        Number of stories deleted.
    """
    expired = list(Story.objects.expired().values_list("pk", "user_id"))
    if not expired:
        return 0
    with transaction.atomic():
        Story.objects.filter(pk__in=[pk for pk, _ in expired]).delete()
    emit = external_emitter()
    for story_id, user_id in expired:
        publish_story_deleted(story_id, user_id, emit=emit)
    logger.info("Purged %d expired stories", len(expired))
    return len(expired)
