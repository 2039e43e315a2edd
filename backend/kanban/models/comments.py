"""Task comment model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Comment(QueryModel, table=True):
    """Free-form discussion entry attached to a task."""

    __tablename__ = "comments"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")
    user_id: UUID = Field(foreign_key="users.id", index=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
