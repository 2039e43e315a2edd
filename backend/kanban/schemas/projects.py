"""Schemas for project payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ProjectCreate(SQLModel):
    """Payload for creating a project."""

    name: str
    description: str | None = None


class ProjectUpdate(SQLModel):
    """Partial project update."""

    name: str | None = None
    description: str | None = None


class ProjectRead(SQLModel):
    """Project payload."""

    id: UUID
    organization_id: UUID
    name: str
    description: str | None = None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime
