"""Classify SNS-delivered SES events and forward them to an event recorder."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Protocol

from mailtrack.core.exceptions import UnknownEventTypeError
from mailtrack.services.ses_events import SESEvent, SNSEnvelope, parse_envelope, parse_event
from mailtrack.utils import sns
from mailtrack.utils.datetime import parse_timestamp
from mailtrack.utils.logger import logger


class Acknowledgement(str, Enum):
    """Plain-text bodies returned to SNS. SNS must never see a failure for benign input."""

    OK = "OK"
    NOT_PROCESSED = "OK (not processed)."


class EmailEventRecorder(Protocol):
    def record_click(self, message_id: str, timestamp: datetime, link: str | None) -> None: ...

    def record_open(self, message_id: str, timestamp: datetime, ip_address: str | None) -> None: ...

    def record_delivery(self, message_id: str, timestamp: datetime) -> None: ...

    def record_complaint(self, message_id: str, timestamp: datetime) -> None: ...

    def record_permanent_bounce(self, message_id: str, timestamp: datetime) -> None: ...


SubscriptionConfirmer = Callable[[str, int], None]
SignatureVerifier = Callable[[dict[str, Any], int], tuple[bool, str]]


class AwsWebhookHandler:
    """Turns one raw SNS request body into recorder calls and an acknowledgement."""

    def __init__(
        self,
        recorder: EmailEventRecorder,
        *,
        confirm_subscription: SubscriptionConfirmer = sns.confirm_subscription,
        verify_signature: SignatureVerifier = sns.verify_sns_signature,
        verify_signatures: bool = False,
        allowed_topic_arns: Iterable[str] = (),
        timeout_seconds: int = 5,
    ) -> None:
        self.recorder = recorder
        self.confirm_subscription = confirm_subscription
        self.verify_signature = verify_signature
        self.verify_signatures = verify_signatures
        self.allowed_topic_arns = list(allowed_topic_arns)
        self.timeout_seconds = timeout_seconds
        # https://docs.aws.amazon.com/ses/latest/dg/event-publishing-retrieving-sns-contents.html
        self._handlers: dict[str, Callable[[str, SESEvent], None]] = {
            "click": self._handle_click,
            "open": self._handle_open,
            "reject": self._handle_reject,
            "delivery": self._handle_delivery,
            "complaint": self._handle_complaint,
            "bounce": self._handle_bounce,
        }

    def handle(self, raw_body: bytes | str) -> Acknowledgement:
        parsed = parse_envelope(raw_body)
        if parsed is None:
            logger.warning("Ignoring SNS request with an unparseable body")
            return Acknowledgement.NOT_PROCESSED
        content, envelope = parsed

        if not self._is_trusted(content, envelope):
            return Acknowledgement.NOT_PROCESSED

        if envelope.Type == "SubscriptionConfirmation":
            return self._subscribe(envelope)

        if envelope.Type != "Notification":
            return Acknowledgement.NOT_PROCESSED

        event = parse_event(envelope.Message)
        if event is None:
            return Acknowledgement.NOT_PROCESSED
        return self.process_event(event)

    def process_event(self, event: SESEvent) -> Acknowledgement:
        message_id = event.message_id
        event_type = event.eventType
        if not event_type or not message_id:
            return Acknowledgement.NOT_PROCESSED

        handler = self._handlers.get(event_type)
        if handler is None:
            raise UnknownEventTypeError(event_type)
        handler(message_id, event)
        return Acknowledgement.OK

    def _is_trusted(self, content: dict[str, Any], envelope: SNSEnvelope) -> bool:
        if not sns.is_allowed_topic(envelope.TopicArn, self.allowed_topic_arns):
            logger.warning("Ignoring SNS message from unexpected topic %s", envelope.TopicArn)
            return False
        if self.verify_signatures:
            ok, reason = self.verify_signature(content, self.timeout_seconds)
            if not ok:
                logger.warning("Rejected SNS message %s: %s", envelope.MessageId, reason)
                return False
        return True

    def _subscribe(self, envelope: SNSEnvelope) -> Acknowledgement:
        subscribe_url = envelope.SubscribeURL
        if not subscribe_url:
            logger.warning("SubscriptionConfirmation for %s has no SubscribeURL", envelope.TopicArn)
            return Acknowledgement.NOT_PROCESSED

        self.confirm_subscription(subscribe_url, self.timeout_seconds)
        logger.info("subscribing url=%s", subscribe_url, extra={"url": subscribe_url})
        return Acknowledgement.OK

    def _handle_click(self, message_id: str, event: SESEvent) -> None:
        click = event.click
        timestamp = parse_timestamp(click.timestamp if click else None)
        self.recorder.record_click(message_id, timestamp, click.link if click else None)

    def _handle_open(self, message_id: str, event: SESEvent) -> None:
        opened = event.open
        timestamp = parse_timestamp(opened.timestamp if opened else None)
        self.recorder.record_open(message_id, timestamp, opened.ipAddress if opened else None)

    def _handle_reject(self, message_id: str, event: SESEvent) -> None:
        # Rejected sends never reached a recipient; nothing to record yet.
        logger.debug("Ignoring reject event for message %s", message_id)

    def _handle_delivery(self, message_id: str, event: SESEvent) -> None:
        delivery = event.delivery
        self.recorder.record_delivery(message_id, parse_timestamp(delivery.timestamp if delivery else None))

    def _handle_complaint(self, message_id: str, event: SESEvent) -> None:
        complaint = event.complaint
        self.recorder.record_complaint(message_id, parse_timestamp(complaint.timestamp if complaint else None))

    def _handle_bounce(self, message_id: str, event: SESEvent) -> None:
        bounce = event.bounce
        bounce_type = (bounce.bounceType if bounce else None) or ""
        timestamp = parse_timestamp(bounce.timestamp if bounce else None)

        # https://aws.amazon.com/blogs/messaging-and-targeting/handling-bounces-and-complaints/
        if bounce_type.lower() == "permanent":
            self.recorder.record_permanent_bounce(message_id, timestamp)
