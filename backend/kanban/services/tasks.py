"""Task lifecycle: create, move, update, and delete tasks on a board.

A task's column always belongs to the task's board, and a task's project is
always its board's project. Both are checked inside the write transaction
with the target column row locked, and every mutation appends its activity
rows in that same transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from kanban.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.board_columns import BoardColumn
from kanban.models.boards import Board
from kanban.models.projects import Project
from kanban.models.tasks import TASK_PRIORITIES, Task
from kanban.services.activity import record_activity
from kanban.services.organizations import get_member
from kanban.services.permission_resolver import AccessLevel

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

    from kanban.schemas.tasks import TaskCreate, TaskUpdate

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("title", "description", "priority", "due_date", "assignee_id")


def _clean_title(title: str | None) -> str:
    value = (title or "").strip()
    if not value:
        raise ValidationError("Task title must not be blank")
    return value


def _normalize_priority(priority: str | None) -> str:
    value = (priority or "").strip().lower()
    if value not in TASK_PRIORITIES:
        raise ValidationError(f"Priority must be one of: {', '.join(TASK_PRIORITIES)}")
    return value


async def get_task(session: AsyncSession, *, task_id: UUID) -> Task:
    task = await Task.objects.by_id(task_id).first(session)
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def _locked_column(session: AsyncSession, column_id: UUID) -> BoardColumn | None:
    return await BoardColumn.objects.by_id(column_id).for_update().first(session)


async def _organization_id_for_project(session: AsyncSession, project_id: UUID) -> UUID:
    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        raise NotFoundError("Project not found")
    return project.organization_id


async def _validate_assignee(
    session: AsyncSession,
    *,
    assignee_id: UUID | None,
    project_id: UUID,
) -> None:
    if assignee_id is None:
        return
    organization_id = await _organization_id_for_project(session, project_id)
    member = await get_member(session, user_id=assignee_id, organization_id=organization_id)
    if member is None:
        raise ValidationError("Assignee must be a member of the organization")


async def _commit_or_conflict(session: AsyncSession) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(
            "Board or column changed during the write",
            retryable=True,
        ) from exc


def board_tasks_statement(
    board_id: UUID,
    *,
    column_id: UUID | None = None,
    assignee_id: UUID | None = None,
) -> SelectOfScalar[Task]:
    """Select a board's tasks, optionally narrowed to a column or assignee."""
    statement = select(Task).where(col(Task.board_id) == board_id)
    if column_id is not None:
        statement = statement.where(col(Task.column_id) == column_id)
    if assignee_id is not None:
        statement = statement.where(col(Task.assignee_id) == assignee_id)
    return statement.order_by(col(Task.created_at).asc())


def user_tasks_statement(
    board_ids: Sequence[UUID],
    *,
    assignee_id: UUID | None = None,
    created_by_id: UUID | None = None,
) -> SelectOfScalar[Task]:
    """Select tasks on the given boards, newest activity first."""
    statement = select(Task).where(col(Task.board_id).in_(list(board_ids)))
    if assignee_id is not None:
        statement = statement.where(col(Task.assignee_id) == assignee_id)
    if created_by_id is not None:
        statement = statement.where(col(Task.created_by_id) == created_by_id)
    return statement.order_by(col(Task.updated_at).desc(), col(Task.id).asc())


async def create_task(session: AsyncSession, *, actor_id: UUID, payload: TaskCreate) -> Task:
    """Create a task in a column of its board and log `created`."""
    title = _clean_title(payload.title)
    priority = _normalize_priority(payload.priority)
    board = await Board.objects.by_id(payload.board_id).first(session)
    if board is None:
        raise NotFoundError("Board not found")
    column = await _locked_column(session, payload.column_id)
    if column is None or column.board_id != board.id:
        raise ValidationError("Column does not belong to the board")
    await _validate_assignee(session, assignee_id=payload.assignee_id, project_id=board.project_id)

    now = utcnow()
    task = Task(
        board_id=board.id,
        column_id=column.id,
        project_id=board.project_id,
        title=title,
        description=payload.description,
        priority=priority,
        due_date=payload.due_date,
        assignee_id=payload.assignee_id,
        created_by_id=actor_id,
        created_at=now,
        updated_at=now,
    )
    session.add(task)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Board or column changed during the write", retryable=True) from exc
    await record_activity(
        session,
        task_id=task.id,
        user_id=actor_id,
        action_type="created",
        field_name="task",
        new_value=task.title,
        commit=False,
    )
    await _commit_or_conflict(session)
    await session.refresh(task)
    logger.info(
        "task.created task_id=%s board_id=%s column_id=%s",
        task.id,
        task.board_id,
        task.column_id,
    )
    return task


async def move_task(
    session: AsyncSession,
    *,
    actor_id: UUID,
    task_id: UUID,
    column_id: UUID,
) -> Task:
    """Move a task to another column of the same board."""
    task = await get_task(session, task_id=task_id)
    column = await _locked_column(session, column_id)
    if column is None:
        raise NotFoundError("Column not found")
    if column.board_id != task.board_id:
        raise ValidationError("Tasks can only move between columns of their own board")
    if column.id == task.column_id:
        return task

    previous_column_id = task.column_id
    task.column_id = column.id
    task.updated_at = utcnow()
    session.add(task)
    await record_activity(
        session,
        task_id=task.id,
        user_id=actor_id,
        action_type="column_change",
        field_name="column",
        old_value=previous_column_id,
        new_value=column.id,
        commit=False,
    )
    await _commit_or_conflict(session)
    await session.refresh(task)
    logger.info(
        "task.moved task_id=%s from_column_id=%s to_column_id=%s",
        task.id,
        previous_column_id,
        column.id,
    )
    return task


async def update_task(
    session: AsyncSession,
    *,
    actor_id: UUID,
    task_id: UUID,
    payload: TaskUpdate,
) -> Task:
    """Update task content fields, logging one `updated` row per change."""
    task = await get_task(session, task_id=task_id)
    updates = payload.model_dump(exclude_unset=True)
    if "title" in updates:
        updates["title"] = _clean_title(updates["title"])
    if "priority" in updates:
        updates["priority"] = _normalize_priority(updates["priority"])
    if "assignee_id" in updates:
        await _validate_assignee(
            session,
            assignee_id=updates["assignee_id"],
            project_id=task.project_id,
        )

    changed: list[tuple[str, object, object]] = []
    for field_name in UPDATABLE_FIELDS:
        if field_name not in updates:
            continue
        old_value = getattr(task, field_name)
        new_value = updates[field_name]
        if old_value == new_value:
            continue
        setattr(task, field_name, new_value)
        changed.append((field_name, old_value, new_value))
    if not changed:
        return task

    task.updated_at = utcnow()
    session.add(task)
    for field_name, old_value, new_value in changed:
        await record_activity(
            session,
            task_id=task.id,
            user_id=actor_id,
            action_type="updated",
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            commit=False,
        )
    await _commit_or_conflict(session)
    await session.refresh(task)
    logger.info(
        "task.updated task_id=%s fields=%s",
        task.id,
        ",".join(name for name, _, _ in changed),
    )
    return task


def can_delete_task(task: Task, *, actor_id: UUID, access: AccessLevel) -> bool:
    """Board admins may delete any task; editors only their own."""
    if access.allows(AccessLevel.ADMIN):
        return True
    return task.created_by_id == actor_id and access.allows(AccessLevel.EDIT)


async def delete_task(
    session: AsyncSession,
    *,
    actor_id: UUID,
    task_id: UUID,
    access: AccessLevel,
) -> None:
    """Delete a task and its comments, attachments, links, and activity."""
    task = await get_task(session, task_id=task_id)
    if not can_delete_task(task, actor_id=actor_id, access=access):
        raise ForbiddenError("Only the task creator or a board admin can delete this task")
    await crud.delete_where(session, Task, col(Task.id) == task.id)
    logger.info("task.deleted task_id=%s board_id=%s", task.id, task.board_id)
