"""Account lookups used by the socket layer.

Both helpers hit the database, so they are wrapped with
``database_sync_to_async`` and awaited from the Socket.IO handlers.
"""

from __future__ import annotations

from channels.db import database_sync_to_async
from django.contrib.auth import get_user_model
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

from social_hub.realtime.exceptions import AuthenticationFailure
from social_hub.realtime.signaling import Account


@database_sync_to_async
def verify_token(token: str | None) -> str:
    """Return the identity bound to a JWT access token."""
    if not token:
        raise AuthenticationFailure
    jwt_auth = JWTAuthentication()
    try:
        validated = jwt_auth.get_validated_token(token)
        user = jwt_auth.get_user(validated)
    except TokenError as exc:
        raise AuthenticationFailure from exc
    except AuthenticationFailed as exc:  # user not found / inactive, etc.
        raise AuthenticationFailure from exc
    return str(user.pk)


@database_sync_to_async
def get_account(identity: str) -> Account | None:
    if not identity.isdigit():
        return None
    user = get_user_model().objects.filter(pk=int(identity), is_active=True).first()
    if user is None:
        return None
    blocked = user.blocked_users.values_list("pk", flat=True)
    return Account(
        identity=str(user.pk),
        blocked_users=frozenset(str(pk) for pk in blocked),
    )
