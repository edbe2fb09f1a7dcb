"""Segment management endpoints, scoped to a workspace."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mailtrack.api.routes.workspaces import get_workspace_or_404
from mailtrack.db import models
from mailtrack.db.session import get_db

router = APIRouter(prefix="/workspaces/{workspace_id}/segments", tags=["segments"])


class SegmentPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class SegmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: int
    name: str


class SegmentEnvelope(BaseModel):
    data: SegmentResponse


class SegmentListEnvelope(BaseModel):
    data: list[SegmentResponse]


def _name_taken(name: str) -> RequestValidationError:
    errors: list[dict[str, Any]] = [
        {
            "type": "value_error",
            "loc": ("body", "name"),
            "msg": "The name has already been taken.",
            "input": name,
        }
    ]
    return RequestValidationError(errors)


def _get_segment(db: Session, workspace_id: int, segment_id: int) -> models.Segment:
    segment = (
        db.query(models.Segment)
        .filter(models.Segment.workspace_id == workspace_id, models.Segment.id == segment_id)
        .first()
    )
    if segment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Segment not found")
    return segment


def _ensure_unique(db: Session, workspace_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.query(models.Segment).filter(models.Segment.workspace_id == workspace_id, models.Segment.name == name)
    if exclude_id is not None:
        query = query.filter(models.Segment.id != exclude_id)
    if query.first() is not None:
        raise _name_taken(name)


def _save(db: Session, segment: models.Segment) -> None:
    name = segment.name
    db.add(segment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _name_taken(name) from exc
    db.refresh(segment)


@router.get("", response_model=SegmentListEnvelope)
def list_segments(workspace_id: int, db: Session = Depends(get_db)) -> SegmentListEnvelope:
    """List a workspace's segments."""

    get_workspace_or_404(db, workspace_id)
    segments = db.query(models.Segment).filter(models.Segment.workspace_id == workspace_id).order_by(models.Segment.id).all()
    return SegmentListEnvelope(data=[SegmentResponse.model_validate(s) for s in segments])


@router.get("/{segment_id}", response_model=SegmentEnvelope)
def get_segment(workspace_id: int, segment_id: int, db: Session = Depends(get_db)) -> SegmentEnvelope:
    get_workspace_or_404(db, workspace_id)
    return SegmentEnvelope(data=SegmentResponse.model_validate(_get_segment(db, workspace_id, segment_id)))


@router.post("", response_model=SegmentEnvelope, status_code=status.HTTP_201_CREATED)
def create_segment(workspace_id: int, payload: SegmentPayload, db: Session = Depends(get_db)) -> SegmentEnvelope:
    """Create a segment; names are unique within a workspace."""

    get_workspace_or_404(db, workspace_id)
    _ensure_unique(db, workspace_id, payload.name)
    segment = models.Segment(workspace_id=workspace_id, name=payload.name)
    _save(db, segment)
    return SegmentEnvelope(data=SegmentResponse.model_validate(segment))


@router.put("/{segment_id}", response_model=SegmentEnvelope)
def update_segment(
    workspace_id: int,
    segment_id: int,
    payload: SegmentPayload,
    db: Session = Depends(get_db),
) -> SegmentEnvelope:
    get_workspace_or_404(db, workspace_id)
    segment = _get_segment(db, workspace_id, segment_id)
    _ensure_unique(db, workspace_id, payload.name, exclude_id=segment.id)
    segment.name = payload.name
    _save(db, segment)
    return SegmentEnvelope(data=SegmentResponse.model_validate(segment))


@router.delete("/{segment_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_segment(workspace_id: int, segment_id: int, db: Session = Depends(get_db)) -> Response:
    get_workspace_or_404(db, workspace_id)
    segment = _get_segment(db, workspace_id, segment_id)
    db.delete(segment)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
