"""Failures reported back to the connection that caused them.

Every error carries the client event it is emitted as and a short message.
Nothing in this module is ever broadcast to other connections.
"""

from __future__ import annotations


class RealtimeError(Exception):
    event = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_payload(self) -> dict[str, str]:
        return {"message": self.message}


class AuthenticationFailed(RealtimeError):
    event = "authError"
    default_message = "Invalid authentication"


class Unauthenticated(RealtimeError):
    default_message = "Not authenticated"


class AccessDenied(RealtimeError):
    default_message = "Access denied to channel"


class NotAMember(RealtimeError):
    default_message = "Not a member of this channel"


class PersistenceError(RealtimeError):
    default_message = "Failed to save message"


class InvalidPayload(RealtimeError):
    default_message = "Invalid payload"
