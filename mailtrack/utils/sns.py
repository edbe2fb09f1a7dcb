"""SNS helper utilities for signature verification and subscriptions."""
from __future__ import annotations

import base64
import binascii
import subprocess
import tempfile
from typing import Any, Iterable
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from mailtrack.core.exceptions import SubscriptionConfirmationError
from mailtrack.utils.logger import logger

_NOTIFICATION_FIELDS = ["Message", "MessageId", "Subject", "Timestamp", "TopicArn", "Type"]
_SUBSCRIPTION_FIELDS = ["Message", "MessageId", "SubscribeURL", "Timestamp", "Token", "TopicArn", "Type"]


def is_allowed_cert_url(cert_url: str) -> tuple[bool, str]:
    """Validate SNS SigningCertURL host and path."""
    parsed = urlparse(cert_url)
    if parsed.scheme != "https":
        return False, "SigningCertURL must use https"
    if not parsed.hostname:
        return False, "SigningCertURL missing hostname"
    host = parsed.hostname
    if host != "sns.amazonaws.com" and not (host.startswith("sns.") and host.endswith(".amazonaws.com")):
        return False, "SigningCertURL hostname is not allowed"
    if not parsed.path.startswith("/SimpleNotificationService-"):
        return False, "SigningCertURL path is not allowed"
    return True, "ok"


def is_allowed_topic(topic_arn: str | None, allowed_topic_arns: Iterable[str]) -> bool:
    """An empty allow-list accepts every topic."""
    allowed = list(allowed_topic_arns)
    if not allowed:
        return True
    return topic_arn in allowed


def build_string_to_sign(payload: dict[str, Any]) -> str:
    fields = _NOTIFICATION_FIELDS if payload.get("Type") == "Notification" else _SUBSCRIPTION_FIELDS
    parts: list[str] = []
    for field in fields:
        value = payload.get(field)
        if value is None:
            continue
        parts.append(field)
        parts.append(str(value))
    return "\n".join(parts) + "\n"


def fetch_url(url: str, timeout_seconds: int) -> bytes:
    request = Request(url, method="GET")
    with urlopen(request, timeout=timeout_seconds) as response:
        return response.read()


def _run_openssl(args: list[str], timeout_seconds: int) -> subprocess.CompletedProcess:
    return subprocess.run(
        args,
        capture_output=True,
        check=False,
        timeout=timeout_seconds,
    )


def _openssl_verify(cert_pem: bytes, signature: bytes, data: bytes, timeout_seconds: int) -> tuple[bool, str]:
    with tempfile.NamedTemporaryFile() as cert_file, tempfile.NamedTemporaryFile() as pubkey_file, tempfile.NamedTemporaryFile() as data_file, tempfile.NamedTemporaryFile() as sig_file:
        cert_file.write(cert_pem)
        cert_file.flush()
        pubkey_result = _run_openssl(
            ["openssl", "x509", "-pubkey", "-noout", "-in", cert_file.name],
            timeout_seconds=timeout_seconds,
        )
        if pubkey_result.returncode != 0:
            return False, "Failed to extract public key"
        pubkey_file.write(pubkey_result.stdout)
        pubkey_file.flush()

        data_file.write(data)
        data_file.flush()
        sig_file.write(signature)
        sig_file.flush()

        verify_result = _run_openssl(
            ["openssl", "dgst", "-sha1", "-verify", pubkey_file.name, "-signature", sig_file.name, data_file.name],
            timeout_seconds=timeout_seconds,
        )
        if verify_result.returncode != 0:
            return False, "Signature verification failed"
    return True, "ok"


def verify_sns_signature(payload: dict[str, Any], timeout_seconds: int) -> tuple[bool, str]:
    """Verify a SignatureVersion 1 SNS signature using the SigningCertURL."""
    signature_b64 = payload.get("Signature")
    cert_url = payload.get("SigningCertURL")
    if str(payload.get("SignatureVersion")) != "1":
        return False, "Unsupported SignatureVersion"
    if not signature_b64 or not cert_url:
        return False, "Missing Signature or SigningCertURL"

    allowed, reason = is_allowed_cert_url(cert_url)
    if not allowed:
        return False, reason

    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError):
        return False, "Invalid Signature encoding"

    try:
        cert_pem = fetch_url(cert_url, timeout_seconds)
    except (URLError, OSError) as exc:  # pragma: no cover - network errors
        logger.warning("Failed to fetch SNS cert: %s", exc)
        return False, "Failed to fetch SigningCertURL"

    data_to_sign = build_string_to_sign(payload).encode("utf-8")
    try:
        return _openssl_verify(cert_pem, signature, data_to_sign, timeout_seconds)
    except FileNotFoundError:
        return False, "openssl is not available for signature verification"
    except subprocess.TimeoutExpired:
        return False, "Signature verification timed out"


def confirm_subscription(subscribe_url: str, timeout_seconds: int) -> None:
    """GET the SubscribeURL; failures propagate so SNS retries the handshake."""
    try:
        fetch_url(subscribe_url, timeout_seconds)
    except (URLError, OSError, ValueError) as exc:
        raise SubscriptionConfirmationError(subscribe_url, str(exc)) from exc
