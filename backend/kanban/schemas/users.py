"""User payload schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class UserRead(SQLModel):
    """Public user fields."""

    id: UUID
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime


class UserUpdate(SQLModel):
    """Partial update of the caller's own profile."""

    first_name: str | None = None
    last_name: str | None = None
