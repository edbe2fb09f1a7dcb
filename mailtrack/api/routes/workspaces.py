"""Workspace management endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.orm import Session

from mailtrack.db import models
from mailtrack.db.session import get_db

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


class WorkspaceCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value


class WorkspaceUpdate(BaseModel):
    name: str | None = None


class WorkspaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


def get_workspace_or_404(db: Session, workspace_id: int) -> models.Workspace:
    workspace = db.query(models.Workspace).filter(models.Workspace.id == workspace_id).first()
    if workspace is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workspace not found")
    return workspace


def _ensure_name_available(db: Session, name: str) -> None:
    if db.query(models.Workspace).filter(models.Workspace.name == name).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Workspace name already taken")


@router.post("/", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
def create_workspace(payload: WorkspaceCreate, db: Session = Depends(get_db)) -> WorkspaceResponse:
    """Create a workspace."""

    _ensure_name_available(db, payload.name)
    workspace = models.Workspace(name=payload.name)
    db.add(workspace)
    db.commit()
    db.refresh(workspace)
    return WorkspaceResponse.model_validate(workspace)


@router.get("/", response_model=list[WorkspaceResponse])
def list_workspaces(db: Session = Depends(get_db)) -> list[WorkspaceResponse]:
    workspaces = db.query(models.Workspace).order_by(models.Workspace.id).all()
    return [WorkspaceResponse.model_validate(w) for w in workspaces]


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
def get_workspace(workspace_id: int, db: Session = Depends(get_db)) -> WorkspaceResponse:
    return WorkspaceResponse.model_validate(get_workspace_or_404(db, workspace_id))


@router.patch("/{workspace_id}", response_model=WorkspaceResponse)
def update_workspace(workspace_id: int, payload: WorkspaceUpdate, db: Session = Depends(get_db)) -> WorkspaceResponse:
    """Rename a workspace."""

    workspace = get_workspace_or_404(db, workspace_id)
    if payload.name is not None and payload.name != workspace.name:
        _ensure_name_available(db, payload.name)
        workspace.name = payload.name
    db.add(workspace)
    db.commit()
    db.refresh(workspace)
    return WorkspaceResponse.model_validate(workspace)


@router.delete("/{workspace_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_workspace(workspace_id: int, db: Session = Depends(get_db)) -> Response:
    """Delete a workspace along with its subscribers, segments and messages."""

    workspace = get_workspace_or_404(db, workspace_id)
    db.delete(workspace)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
