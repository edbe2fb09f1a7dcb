"""Tracked message endpoints: register sent messages and read their delivery stats."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from mailtrack.api.routes.subscribers import get_subscriber_or_404
from mailtrack.api.routes.workspaces import get_workspace_or_404
from mailtrack.db import models
from mailtrack.db.session import get_db

router = APIRouter(prefix="/workspaces/{workspace_id}/messages", tags=["messages"])


class MessageCreate(BaseModel):
    message_id: str
    recipient_email: str
    subscriber_id: int | None = None
    subject: str | None = None


class MessageUrlResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    click_count: int


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: int
    subscriber_id: int | None = None
    message_id: str
    recipient_email: str
    subject: str | None = None
    delivered_at: datetime | None = None
    opened_at: datetime | None = None
    open_count: int
    ip: str | None = None
    clicked_at: datetime | None = None
    click_count: int
    bounced_at: datetime | None = None
    complained_at: datetime | None = None
    urls: list[MessageUrlResponse] = []


def _get_message(db: Session, workspace_id: int, message_pk: int) -> models.Message:
    message = (
        db.query(models.Message)
        .filter(models.Message.workspace_id == workspace_id, models.Message.id == message_pk)
        .first()
    )
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register_message(workspace_id: int, payload: MessageCreate, db: Session = Depends(get_db)) -> MessageResponse:
    """Register a message sent through SES so its events can be tracked."""

    get_workspace_or_404(db, workspace_id)
    if payload.subscriber_id is not None:
        get_subscriber_or_404(db, workspace_id, payload.subscriber_id)
    if db.query(models.Message).filter(models.Message.message_id == payload.message_id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Message already registered")

    message = models.Message(
        workspace_id=workspace_id,
        subscriber_id=payload.subscriber_id,
        message_id=payload.message_id,
        recipient_email=payload.recipient_email,
        subject=payload.subject,
        open_count=0,
        click_count=0,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return MessageResponse.model_validate(message)


@router.get("", response_model=list[MessageResponse])
def list_messages(
    workspace_id: int,
    subscriber_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[MessageResponse]:
    """List messages optionally filtered by subscriber."""

    get_workspace_or_404(db, workspace_id)
    query = db.query(models.Message).filter(models.Message.workspace_id == workspace_id)
    if subscriber_id is not None:
        query = query.filter(models.Message.subscriber_id == subscriber_id)
    return [MessageResponse.model_validate(m) for m in query.order_by(models.Message.id.desc()).all()]


@router.get("/{message_pk}", response_model=MessageResponse)
def get_message(workspace_id: int, message_pk: int, db: Session = Depends(get_db)) -> MessageResponse:
    get_workspace_or_404(db, workspace_id)
    return MessageResponse.model_validate(_get_message(db, workspace_id, message_pk))
