"""Task model: a card placed in one column of one board."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

TASK_PRIORITIES = ("low", "medium", "high")


class Task(QueryModel, table=True):
    """Board task; `column_id` must reference a column of `board_id`."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True, ondelete="CASCADE")
    column_id: UUID = Field(foreign_key="board_columns.id", index=True, ondelete="RESTRICT")
    project_id: UUID = Field(foreign_key="projects.id", index=True, ondelete="CASCADE")
    title: str
    description: str | None = None
    priority: str = Field(default="medium", index=True)
    due_date: datetime | None = None
    assignee_id: UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
        ondelete="SET NULL",
    )
    created_by_id: UUID = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
