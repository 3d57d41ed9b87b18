from django.contrib import admin

from social_hub.posts import models


class CommentInline(admin.TabularInline):
    model = models.Comment
    extra = 0


@admin.register(models.Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "caption", "created_at"]
    search_fields = ["caption", "user__username"]
    list_filter = ["created_at"]
    inlines = [CommentInline]
