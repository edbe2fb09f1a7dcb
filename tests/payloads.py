"""Builders for SNS envelopes and SES event-publishing payloads."""
from __future__ import annotations

import json

TOPIC_ARN = "arn:aws:sns:eu-west-1:123456789012:ses-events"


def notification_body(message: dict, **envelope) -> str:
    payload = {
        "Type": "Notification",
        "MessageId": "sns-message-id",
        "TopicArn": TOPIC_ARN,
        "Message": json.dumps(message),
        "Timestamp": "2024-01-01T00:00:01.000Z",
        "SignatureVersion": "1",
        "Signature": "dGVzdA==",
        "SigningCertURL": "https://sns.eu-west-1.amazonaws.com/SimpleNotificationService-test.pem",
    }
    payload.update(envelope)
    return json.dumps(payload)


def ses_event(event_type: str, message_id: str = "abc123", **details) -> dict:
    event: dict = {"eventType": event_type, "mail": {"messageId": message_id}}
    event.update(details)
    return event
