"""Task attachment metadata model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Attachment(QueryModel, table=True):
    """Pointer to an object stored outside the database."""

    __tablename__ = "attachments"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")
    user_id: UUID = Field(foreign_key="users.id", index=True)
    file_name: str
    object_path: str
    file_size: int | None = None
    mime_type: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
