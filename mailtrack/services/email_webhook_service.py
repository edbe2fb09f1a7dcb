"""Persist SES delivery events against previously sent messages."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from mailtrack.db import models
from mailtrack.utils.logger import logger

UNSUBSCRIBE_BOUNCE = "bounce"
UNSUBSCRIBE_COMPLAINT = "complaint"


class EmailWebhookService:
    """Event recorder backed by the ``messages`` table.

    Events for unknown message ids are logged and kept in the audit trail;
    repeated events increment counters but never move a first-seen timestamp.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def record_click(self, message_id: str, timestamp: datetime, link: str | None) -> None:
        message = self._find_message(message_id)
        if message is not None:
            # A click implies the message was opened.
            if message.opened_at is None:
                message.opened_at = timestamp
                message.open_count = (message.open_count or 0) + 1
            if message.clicked_at is None:
                message.clicked_at = timestamp
            message.click_count = (message.click_count or 0) + 1
            if link:
                self._count_url_click(message, link)
            self.db.add(message)
        self._record_event(message, message_id, "click", timestamp)

    def record_open(self, message_id: str, timestamp: datetime, ip_address: str | None) -> None:
        message = self._find_message(message_id)
        if message is not None:
            if message.opened_at is None:
                message.opened_at = timestamp
                message.ip = ip_address
            message.open_count = (message.open_count or 0) + 1
            self.db.add(message)
        self._record_event(message, message_id, "open", timestamp)

    def record_delivery(self, message_id: str, timestamp: datetime) -> None:
        message = self._find_message(message_id)
        if message is not None:
            message.delivered_at = timestamp
            self.db.add(message)
        self._record_event(message, message_id, "delivery", timestamp)

    def record_complaint(self, message_id: str, timestamp: datetime) -> None:
        message = self._find_message(message_id)
        if message is not None:
            message.complained_at = timestamp
            self.db.add(message)
            self._unsubscribe(message, UNSUBSCRIBE_COMPLAINT, timestamp)
        self._record_event(message, message_id, "complaint", timestamp)

    def record_permanent_bounce(self, message_id: str, timestamp: datetime) -> None:
        message = self._find_message(message_id)
        if message is not None:
            message.bounced_at = timestamp
            self.db.add(message)
            self._unsubscribe(message, UNSUBSCRIBE_BOUNCE, timestamp)
        self._record_event(message, message_id, "permanent_bounce", timestamp)

    def _find_message(self, message_id: str) -> models.Message | None:
        message = self.db.query(models.Message).filter(models.Message.message_id == message_id).first()
        if message is None:
            logger.warning("Message not found for message_id=%s", message_id)
        return message

    def _count_url_click(self, message: models.Message, link: str) -> None:
        message_url = (
            self.db.query(models.MessageUrl)
            .filter(models.MessageUrl.message_pk == message.id, models.MessageUrl.url == link)
            .first()
        )
        if message_url is None:
            message_url = models.MessageUrl(message_pk=message.id, url=link, click_count=0)
        message_url.click_count = (message_url.click_count or 0) + 1
        self.db.add(message_url)

    def _unsubscribe(self, message: models.Message, reason: str, timestamp: datetime) -> None:
        subscriber = message.subscriber
        if subscriber is None or subscriber.unsubscribed_at is not None:
            return
        subscriber.unsubscribed_at = timestamp
        subscriber.unsubscribe_reason = reason
        self.db.add(subscriber)
        logger.info("Unsubscribed subscriber %s after %s", subscriber.id, reason)

    def _record_event(
        self,
        message: models.Message | None,
        message_id: str,
        event_type: str,
        timestamp: datetime,
    ) -> None:
        self.db.add(
            models.EmailEvent(
                message_pk=message.id if message is not None else None,
                ses_message_id=message_id,
                event_type=event_type,
                occurred_at=timestamp,
            )
        )
        self.db.commit()
