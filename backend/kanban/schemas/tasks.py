"""Schemas for tasks and their child records."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

TaskPriority = Literal["low", "medium", "high"]
RelationshipType = Literal["related", "blocks", "blocked_by", "duplicate"]


class TaskCreate(SQLModel):
    """Payload for creating a task on a board."""

    board_id: UUID
    column_id: UUID
    title: str
    description: str | None = None
    priority: str = "medium"
    due_date: datetime | None = None
    assignee_id: UUID | None = None


class TaskUpdate(SQLModel):
    """Partial update of task content fields."""

    title: str | None = None
    description: str | None = None
    priority: str | None = None
    due_date: datetime | None = None
    assignee_id: UUID | None = None


class TaskMove(SQLModel):
    """Target column for a move within the task's board."""

    column_id: UUID


class TaskRead(SQLModel):
    """Task payload."""

    id: UUID
    board_id: UUID
    column_id: UUID
    project_id: UUID
    title: str
    description: str | None = None
    priority: str
    due_date: datetime | None = None
    assignee_id: UUID | None = None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class ActivityRead(SQLModel):
    """Activity log entry payload."""

    id: UUID
    task_id: UUID
    user_id: UUID
    action_type: str
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    created_at: datetime


class CommentCreate(SQLModel):
    """Payload for commenting on a task."""

    content: str


class CommentRead(SQLModel):
    """Comment payload."""

    id: UUID
    task_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime


class UploadTargetRead(SQLModel):
    """Where the client should upload attachment bytes."""

    upload_url: str
    object_path: str


class AttachmentCreate(SQLModel):
    """Register an already-uploaded object against a task."""

    file_name: str
    object_path: str
    file_size: int | None = None
    mime_type: str | None = None


class AttachmentRead(SQLModel):
    """Attachment payload."""

    id: UUID
    task_id: UUID
    user_id: UUID
    file_name: str
    object_path: str
    file_size: int | None = None
    mime_type: str | None = None
    created_at: datetime


class TaskRelationshipCreate(SQLModel):
    """Link a task to another task."""

    related_task_id: UUID
    relationship_type: RelationshipType = "related"


class TaskRelationshipRead(SQLModel):
    """Task relationship payload."""

    id: UUID
    task_id: UUID
    related_task_id: UUID
    relationship_type: str
    created_by_id: UUID
    created_at: datetime
