from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import CharField
from django.db.models import EmailField
from django.utils.translation import gettext_lazy as _

DEFAULT_PROFILE_IMAGE = "https://cdn-icons-png.flaticon.com/512/847/847969.png"


class User(AbstractUser):
    """
    Default custom user model for social_hub.

    Accounts are created by an administrator once a registration request is
    approved, so the profile fields mirror that request.
    """

    # First and last name do not cover name patterns around the globe
    name = CharField(_("Full Name"), blank=True, max_length=255)
    email = EmailField(_("email address"), unique=True)
    number = CharField(_("Phone Number"), blank=True, max_length=30)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = CharField(max_length=30, blank=True)
    location = CharField(max_length=255, blank=True)
    profile_image = models.URLField(max_length=500, default=DEFAULT_PROFILE_IMAGE)

    # Directional relations: ``a.following`` holds b when a follows b,
    # ``a.blocked_users`` holds b when a blocked b.
    following = models.ManyToManyField(
        "self",
        symmetrical=False,
        related_name="followers",
        blank=True,
    )
    blocked_users = models.ManyToManyField(
        "self",
        symmetrical=False,
        related_name="blocked_by",
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name or self.username

    def has_blocked(self, other: "User") -> bool:
        return self.blocked_users.filter(pk=other.pk).exists()

    def is_following(self, other: "User") -> bool:
        return self.following.filter(pk=other.pk).exists()
