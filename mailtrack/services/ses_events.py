"""Typed views over SNS envelopes and SES event-publishing payloads.

Only the paths the webhook reads are declared, and none of them can fail
validation: a missing or oddly shaped value decodes to ``None``. Timestamps
are passed through untouched so that a malformed value surfaces when a
handler parses it rather than being lost in validation.
"""
from __future__ import annotations

import json
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator


def _text_or_none(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


Text = Annotated[Optional[str], BeforeValidator(_text_or_none)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SNSEnvelope(_Payload):
    Type: Text = None
    MessageId: Text = None
    TopicArn: Text = None
    Message: Text = None
    SubscribeURL: Text = None


class Mail(_Payload):
    messageId: Text = None


class ClickDetail(_Payload):
    link: Text = None
    timestamp: Any = None


class OpenDetail(_Payload):
    ipAddress: Text = None
    timestamp: Any = None


class DeliveryDetail(_Payload):
    timestamp: Any = None


class ComplaintDetail(_Payload):
    timestamp: Any = None


class BounceDetail(_Payload):
    bounceType: Text = None
    timestamp: Any = None


class SESEvent(_Payload):
    eventType: Text = None
    mail: Mail | None = None
    click: ClickDetail | None = None
    open: OpenDetail | None = None
    delivery: DeliveryDetail | None = None
    complaint: ComplaintDetail | None = None
    bounce: BounceDetail | None = None

    @field_validator("mail", "click", "open", "delivery", "complaint", "bounce", mode="before")
    @classmethod
    def _sections_are_objects(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @property
    def message_id(self) -> str | None:
        return self.mail.messageId if self.mail else None


def _load_object(raw: str | bytes | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        content = json.loads(raw)
    except (ValueError, TypeError):
        return None
    return content if isinstance(content, dict) else None


def parse_envelope(raw_body: bytes | str) -> tuple[dict[str, Any], SNSEnvelope] | None:
    """Return the raw mapping and its typed view, or ``None`` if unusable."""
    content = _load_object(raw_body)
    if content is None:
        return None
    return content, SNSEnvelope.model_validate(content)


def parse_event(message: str | None) -> SESEvent | None:
    """Decode the JSON-encoded ``Message`` of a Notification envelope."""
    content = _load_object(message)
    if not content:
        return None
    return SESEvent.model_validate(content)
