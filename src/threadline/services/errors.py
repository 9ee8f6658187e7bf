"""Error taxonomy raised by the messaging services.

Ledger and authorization failures propagate to the caller with a specific
kind; the API layer maps each kind to an HTTP status. ``TransportError`` is
the exception: the broadcaster catches it and only logs it.
"""

from __future__ import annotations


class MessagingError(Exception):
    """Base class for all messaging failures."""

    default_detail = "Messaging operation failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class SelfActionError(MessagingError):
    """Raised when a user targets themselves with a two-party action."""

    default_detail = "Cannot send message to yourself"


# Name used by callers that think in terms of the send operation.
SelfMessageError = SelfActionError


class UnauthorizedError(MessagingError):
    """Raised when the actor is not allowed to touch the resource."""

    default_detail = "Unauthorized"


class NotFoundError(MessagingError):
    """Raised when a message, post or user reference does not resolve."""

    default_detail = "Not found"


class UnknownRecipientError(NotFoundError):
    """Raised when the receiving user does not exist."""

    default_detail = "Recipient not found"


class ValidationError(MessagingError):
    """Raised for malformed message input."""

    default_detail = "Invalid message"


class TransportError(MessagingError):
    """Raised by broadcast transports when an event could not be handed off."""

    default_detail = "Broadcast transport unavailable"
