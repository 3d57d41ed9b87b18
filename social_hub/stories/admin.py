from django.contrib import admin

from social_hub.stories import models


@admin.register(models.Story)
class StoryAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "file_type", "created_at"]
    search_fields = ["user__username"]
    list_filter = ["file_type", "created_at"]
