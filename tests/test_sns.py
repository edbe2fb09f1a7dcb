"""Tests for SNS signature and subscription helpers."""
from __future__ import annotations

import json
from types import SimpleNamespace
from urllib.error import URLError

import pytest

from mailtrack.core.exceptions import SubscriptionConfirmationError
from mailtrack.utils import sns as sns_utils

from payloads import TOPIC_ARN, notification_body


def _payload() -> dict:
    return json.loads(notification_body({"eventType": "delivery", "mail": {"messageId": "mid"}}))


def test_verify_sns_signature_happy(monkeypatch):
    fetched = []

    def fake_fetch(url, timeout_seconds):  # noqa: ARG001
        fetched.append(url)
        return b"cert"

    def fake_run(args, timeout_seconds):  # noqa: ARG001
        if "x509" in args:
            return SimpleNamespace(returncode=0, stdout=b"PUBKEY")
        return SimpleNamespace(returncode=0, stdout=b"")

    monkeypatch.setattr(sns_utils, "fetch_url", fake_fetch)
    monkeypatch.setattr(sns_utils, "_run_openssl", fake_run)

    ok, reason = sns_utils.verify_sns_signature(_payload(), 3)

    assert ok is True
    assert reason == "ok"
    assert fetched == ["https://sns.eu-west-1.amazonaws.com/SimpleNotificationService-test.pem"]


def test_verify_sns_signature_fail(monkeypatch):
    monkeypatch.setattr(sns_utils, "fetch_url", lambda url, timeout_seconds: b"cert")
    monkeypatch.setattr(sns_utils, "_run_openssl", lambda args, timeout_seconds: SimpleNamespace(returncode=1, stdout=b""))

    ok, _ = sns_utils.verify_sns_signature(_payload(), 3)

    assert ok is False


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"SignatureVersion": "2"}, "Unsupported SignatureVersion"),
        ({"Signature": None}, "Missing Signature or SigningCertURL"),
        ({"SigningCertURL": "http://sns.eu-west-1.amazonaws.com/SimpleNotificationService-x.pem"}, "SigningCertURL must use https"),
        ({"SigningCertURL": "https://evil.example.com/SimpleNotificationService-x.pem"}, "SigningCertURL hostname is not allowed"),
        ({"SigningCertURL": "https://sns.eu-west-1.amazonaws.com/cert.pem"}, "SigningCertURL path is not allowed"),
        ({"Signature": "***"}, "Invalid Signature encoding"),
    ],
)
def test_verify_sns_signature_rejects_before_fetching(monkeypatch, overrides, reason):
    def no_fetch(url, timeout_seconds):  # noqa: ARG001
        raise AssertionError("certificate should not be fetched")

    monkeypatch.setattr(sns_utils, "fetch_url", no_fetch)
    payload = {**_payload(), **overrides}

    assert sns_utils.verify_sns_signature(payload, 3) == (False, reason)


def test_string_to_sign_for_notification_skips_missing_fields():
    payload = {"Type": "Notification", "Message": "m", "MessageId": "id", "Timestamp": "t", "TopicArn": "arn"}

    assert sns_utils.build_string_to_sign(payload) == "Message\nm\nMessageId\nid\nTimestamp\nt\nTopicArn\narn\nType\nNotification\n"


def test_string_to_sign_for_subscription_includes_token():
    payload = {"Type": "SubscriptionConfirmation", "SubscribeURL": "u", "Token": "tok"}

    assert sns_utils.build_string_to_sign(payload) == "SubscribeURL\nu\nToken\ntok\nType\nSubscriptionConfirmation\n"


def test_empty_topic_allow_list_accepts_everything():
    assert sns_utils.is_allowed_topic(TOPIC_ARN, []) is True
    assert sns_utils.is_allowed_topic(None, []) is True


def test_topic_allow_list_filters():
    assert sns_utils.is_allowed_topic(TOPIC_ARN, [TOPIC_ARN]) is True
    assert sns_utils.is_allowed_topic("arn:aws:sns:us-east-1:1:x", [TOPIC_ARN]) is False
    assert sns_utils.is_allowed_topic(None, [TOPIC_ARN]) is False


def test_confirm_subscription_fetches_url(monkeypatch):
    calls = []
    monkeypatch.setattr(sns_utils, "fetch_url", lambda url, timeout_seconds: calls.append((url, timeout_seconds)) or b"")

    sns_utils.confirm_subscription("https://example.com/confirm", 4)

    assert calls == [("https://example.com/confirm", 4)]


def test_confirm_subscription_raises_on_network_error(monkeypatch):
    def fail(url, timeout_seconds):  # noqa: ARG001
        raise URLError("connection refused")

    monkeypatch.setattr(sns_utils, "fetch_url", fail)

    with pytest.raises(SubscriptionConfirmationError) as excinfo:
        sns_utils.confirm_subscription("https://example.com/confirm", 4)
    assert excinfo.value.url == "https://example.com/confirm"
