"""Failures raised while validating a realtime event.

Every failure carries the message sent back to the client. Only
``AuthenticationFailure`` ends the connection; the rest drop a single event.
"""

from __future__ import annotations


class RealtimeError(Exception):
    default_message = "Realtime error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(RealtimeError):
    default_message = "Invalid or expired token"


class AuthorizationFailure(RealtimeError):
    default_message = "Unauthorized caller"


class NotFound(RealtimeError):
    default_message = "User not found"


class Forbidden(RealtimeError):
    default_message = "You are blocked by this user"


class Unavailable(RealtimeError):
    default_message = "User is offline"
