"""Subscriber management endpoints, scoped to a workspace."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.orm import Session

from mailtrack.api.routes.workspaces import get_workspace_or_404
from mailtrack.db import models
from mailtrack.db.session import get_db

router = APIRouter(prefix="/workspaces/{workspace_id}/subscribers", tags=["subscribers"])


class SubscriberCreate(BaseModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("email must be valid")
        return value


class SubscriberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    unsubscribed_at: datetime | None = None
    unsubscribe_reason: str | None = None


def get_subscriber_or_404(db: Session, workspace_id: int, subscriber_id: int) -> models.Subscriber:
    subscriber = (
        db.query(models.Subscriber)
        .filter(models.Subscriber.workspace_id == workspace_id, models.Subscriber.id == subscriber_id)
        .first()
    )
    if subscriber is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscriber not found")
    return subscriber


@router.post("", response_model=SubscriberResponse, status_code=status.HTTP_201_CREATED)
def add_subscriber(workspace_id: int, payload: SubscriberCreate, db: Session = Depends(get_db)) -> SubscriberResponse:
    """Add a subscriber to a workspace if not already present."""

    get_workspace_or_404(db, workspace_id)
    existing = (
        db.query(models.Subscriber)
        .filter(models.Subscriber.workspace_id == workspace_id, models.Subscriber.email == payload.email)
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subscriber already exists")

    subscriber = models.Subscriber(
        workspace_id=workspace_id,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(subscriber)
    db.commit()
    db.refresh(subscriber)
    return SubscriberResponse.model_validate(subscriber)


@router.get("", response_model=list[SubscriberResponse])
def list_subscribers(
    workspace_id: int,
    unsubscribed: bool | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[SubscriberResponse]:
    """List a workspace's subscribers, optionally only (un)subscribed ones."""

    get_workspace_or_404(db, workspace_id)
    query = db.query(models.Subscriber).filter(models.Subscriber.workspace_id == workspace_id)
    if unsubscribed is True:
        query = query.filter(models.Subscriber.unsubscribed_at.is_not(None))
    elif unsubscribed is False:
        query = query.filter(models.Subscriber.unsubscribed_at.is_(None))
    return [SubscriberResponse.model_validate(s) for s in query.order_by(models.Subscriber.id).all()]


@router.get("/{subscriber_id}", response_model=SubscriberResponse)
def get_subscriber(workspace_id: int, subscriber_id: int, db: Session = Depends(get_db)) -> SubscriberResponse:
    get_workspace_or_404(db, workspace_id)
    return SubscriberResponse.model_validate(get_subscriber_or_404(db, workspace_id, subscriber_id))


@router.delete("/{subscriber_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_subscriber(workspace_id: int, subscriber_id: int, db: Session = Depends(get_db)) -> Response:
    """Remove a subscriber."""

    get_workspace_or_404(db, workspace_id)
    subscriber = get_subscriber_or_404(db, workspace_id, subscriber_id)
    db.delete(subscriber)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
