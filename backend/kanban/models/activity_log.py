"""Append-only task activity model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

ACTIVITY_ACTION_TYPES = ("created", "status_change", "column_change", "updated")


class ActivityLogEntry(QueryModel, table=True):
    """Immutable record of one task mutation."""

    __tablename__ = "activity_log"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")
    user_id: UUID = Field(foreign_key="users.id", index=True)
    action_type: str = Field(index=True)
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
