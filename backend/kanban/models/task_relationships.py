"""Typed links between two tasks of the same organization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

RELATIONSHIP_TYPES = ("related", "blocks", "blocked_by", "duplicate")


class TaskRelationship(QueryModel, table=True):
    """Directed relationship from `task_id` to `related_task_id`."""

    __tablename__ = "task_relationships"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "task_id",
            "related_task_id",
            "relationship_type",
            name="uq_task_relationships_pair_type",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")
    related_task_id: UUID = Field(foreign_key="tasks.id", index=True, ondelete="CASCADE")
    relationship_type: str = Field(default="related")
    created_by_id: UUID = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
