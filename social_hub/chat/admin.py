from django.contrib import admin

from social_hub.chat import models


@admin.register(models.Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "sender", "receiver", "timestamp"]
    search_fields = ["message", "sender__username", "receiver__username"]
    list_filter = ["timestamp"]
