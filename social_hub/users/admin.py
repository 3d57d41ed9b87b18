from django.contrib import admin
from django.contrib.auth import admin as auth_admin
from django.utils.translation import gettext_lazy as _

from social_hub.users.models import User


@admin.register(User)
class UserAdmin(auth_admin.UserAdmin):
    fieldsets = (
        *auth_admin.UserAdmin.fieldsets,
        (
            _("Profile"),
            {"fields": ("name", "number", "age", "gender", "location", "profile_image")},
        ),
        (_("Relations"), {"fields": ("following", "blocked_users")}),
    )
    filter_horizontal = (
        *auth_admin.UserAdmin.filter_horizontal,
        "following",
        "blocked_users",
    )
    list_display = ["username", "name", "email", "location", "is_active"]
    search_fields = ["username", "name", "email"]
