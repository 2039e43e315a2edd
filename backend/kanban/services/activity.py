"""Append-only activity log for task mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col, select

from kanban.core.errors import ValidationError
from kanban.core.time import utcnow
from kanban.models.activity_log import ACTIVITY_ACTION_TYPES, ActivityLogEntry

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar


def _stringify(value: object) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


async def record_activity(
    session: AsyncSession,
    *,
    task_id: UUID,
    user_id: UUID,
    action_type: str,
    field_name: str | None = None,
    old_value: object = None,
    new_value: object = None,
    commit: bool = True,
) -> ActivityLogEntry:
    """Append one activity row; entries are never updated afterwards."""
    if action_type not in ACTIVITY_ACTION_TYPES:
        raise ValidationError(f"Unknown activity action: {action_type}")
    entry = ActivityLogEntry(
        task_id=task_id,
        user_id=user_id,
        action_type=action_type,
        field_name=field_name,
        old_value=_stringify(old_value),
        new_value=_stringify(new_value),
        created_at=utcnow(),
    )
    session.add(entry)
    if commit:
        await session.commit()
        await session.refresh(entry)
    return entry


def task_activity_statement(task_id: UUID) -> SelectOfScalar[ActivityLogEntry]:
    """Select a task's activity, newest first."""
    return (
        select(ActivityLogEntry)
        .where(col(ActivityLogEntry.task_id) == task_id)
        .order_by(col(ActivityLogEntry.created_at).desc(), col(ActivityLogEntry.id).desc())
    )


async def list_task_activity(session: AsyncSession, *, task_id: UUID) -> list[ActivityLogEntry]:
    return list(await session.exec(task_activity_statement(task_id)))
