"""Inbound webhook endpoint for SES events delivered through SNS."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from mailtrack.core.config import settings
from mailtrack.db.session import get_db
from mailtrack.services.aws_webhooks import AwsWebhookHandler
from mailtrack.services.email_webhook_service import EmailWebhookService
from mailtrack.utils import sns

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def get_webhook_handler(db: Session = Depends(get_db)) -> AwsWebhookHandler:
    """FastAPI dependency wiring the handler to the database-backed recorder."""

    return AwsWebhookHandler(
        EmailWebhookService(db),
        confirm_subscription=sns.confirm_subscription,
        verify_signature=sns.verify_sns_signature,
        verify_signatures=settings.sns_verify_signatures,
        allowed_topic_arns=settings.sns_allowed_topic_arns,
        timeout_seconds=settings.sns_http_timeout_seconds,
    )


@router.post("/aws", response_class=PlainTextResponse)
async def handle_aws_webhook(
    request: Request,
    handler: AwsWebhookHandler = Depends(get_webhook_handler),
) -> PlainTextResponse:
    """Acknowledge an SNS delivery.

    Unknown SES event types become a 404 and failed subscription handshakes a
    502 through the application's exception handlers.
    """

    body = await request.body()
    acknowledgement = await run_in_threadpool(handler.handle, body)
    return PlainTextResponse(acknowledgement.value)
