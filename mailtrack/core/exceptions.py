"""Domain errors raised while processing SES webhooks."""
from __future__ import annotations


class WebhookError(Exception):
    """Base class for webhook processing failures."""


class UnknownEventTypeError(WebhookError):
    """The notification carried an eventType we have no handler for."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"Unknown SES event type: {event_type!r}")


class InvalidTimestampError(WebhookError, ValueError):
    """A recognised event carried a timestamp that could not be parsed."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid event timestamp: {value!r}")


class SubscriptionConfirmationError(WebhookError):
    """The SubscribeURL GET failed; SNS will retry the handshake."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to confirm SNS subscription at {url}: {reason}")
