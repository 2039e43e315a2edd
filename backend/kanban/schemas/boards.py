"""Schemas for board and column payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class BoardCreate(SQLModel):
    """Payload for creating a board."""

    name: str
    description: str | None = None


class BoardUpdate(SQLModel):
    """Partial board update."""

    name: str | None = None
    description: str | None = None


class BoardRead(SQLModel):
    """Board payload."""

    id: UUID
    project_id: UUID
    name: str
    description: str | None = None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class BoardAccessRead(SQLModel):
    """Caller's resolved access level on a board."""

    board_id: UUID
    access: str


class ColumnCreate(SQLModel):
    """Payload for appending a column to a board."""

    name: str
    color: str | None = None


class ColumnUpdate(SQLModel):
    """Rename or recolor a column."""

    name: str
    color: str | None = None


class ColumnReorder(SQLModel):
    """Full ordered list of a board's column ids."""

    column_ids: list[UUID] = Field(default_factory=list)


class ColumnRead(SQLModel):
    """Column payload."""

    id: UUID
    board_id: UUID
    name: str
    order: int
    color: str | None = None
    created_at: datetime
