"""Task endpoints plus task activity, comments, attachments, and links."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from kanban.api.deps import (
    AUTH_DEP,
    BOARD_VIEW_DEP,
    SESSION_DEP,
    TASK_EDIT_DEP,
    TASK_VIEW_DEP,
    BoardContext,
    TaskContext,
)
from kanban.db.pagination import paginate
from kanban.models.tasks import Task
from kanban.schemas.common import OkResponse
from kanban.schemas.pagination import DefaultLimitOffsetPage
from kanban.schemas.tasks import (
    ActivityRead,
    AttachmentCreate,
    AttachmentRead,
    CommentCreate,
    CommentRead,
    TaskCreate,
    TaskMove,
    TaskRead,
    TaskRelationshipCreate,
    TaskRelationshipRead,
    TaskUpdate,
    UploadTargetRead,
)
from kanban.services import attachments as attachment_service
from kanban.services import boards as board_service
from kanban.services import comments as comment_service
from kanban.services import task_relationships as relationship_service
from kanban.services import tasks as task_service
from kanban.services.activity import task_activity_statement
from kanban.services.object_storage import get_object_storage
from kanban.services.permission_resolver import AccessLevel, AccessScope, require_access

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext
    from kanban.services.object_storage import ObjectStorage

router = APIRouter(tags=["tasks"])
STORAGE_DEP = Depends(get_object_storage)
COLUMN_FILTER_QUERY = Query(default=None)
ASSIGNEE_FILTER_QUERY = Query(default=None)
ASSIGNED_TO_ME_QUERY = Query(default=False)
CREATED_BY_ME_QUERY = Query(default=False)


def _tasks_to_read(items: Sequence[Any]) -> list[TaskRead]:
    tasks: list[TaskRead] = []
    for item in items:
        if not isinstance(item, Task):
            msg = "Expected Task items from paginated query"
            raise TypeError(msg)
        tasks.append(TaskRead.model_validate(item, from_attributes=True))
    return tasks


@router.get("/boards/{board_id}/tasks", response_model=DefaultLimitOffsetPage[TaskRead])
async def list_board_tasks(
    column_id: UUID | None = COLUMN_FILTER_QUERY,
    assignee_id: UUID | None = ASSIGNEE_FILTER_QUERY,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_VIEW_DEP,
) -> LimitOffsetPage[TaskRead]:
    """List board tasks, optionally filtered by column or assignee."""
    statement = task_service.board_tasks_statement(
        ctx.board.id,
        column_id=column_id,
        assignee_id=assignee_id,
    )
    return await paginate(session, statement, transformer=_tasks_to_read)


@router.get("/tasks", response_model=DefaultLimitOffsetPage[TaskRead])
async def list_my_tasks(
    assigned_to_me: bool = ASSIGNED_TO_ME_QUERY,
    created_by_me: bool = CREATED_BY_ME_QUERY,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> LimitOffsetPage[TaskRead]:
    """List tasks on every board the caller can view, across organizations."""
    board_ids = await board_service.visible_board_ids(session, user_id=auth.user.id)
    statement = task_service.user_tasks_statement(
        board_ids,
        assignee_id=auth.user.id if assigned_to_me else None,
        created_by_id=auth.user.id if created_by_me else None,
    )
    return await paginate(session, statement, transformer=_tasks_to_read)


@router.post("/tasks", response_model=TaskRead)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    """Create a task in a column of the given board (requires `edit`)."""
    await require_access(
        session,
        user_id=auth.user.id,
        scope=AccessScope.board(payload.board_id),
        minimum=AccessLevel.EDIT,
    )
    task = await task_service.create_task(session, actor_id=auth.user.id, payload=payload)
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("/tasks/{task_id}", response_model=TaskRead)
async def get_task(ctx: TaskContext = TASK_VIEW_DEP) -> TaskRead:
    return TaskRead.model_validate(ctx.task, from_attributes=True)


@router.patch("/tasks/{task_id}", response_model=TaskRead)
async def update_task(
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> TaskRead:
    task = await task_service.update_task(
        session,
        actor_id=auth.user.id,
        task_id=ctx.task.id,
        payload=payload,
    )
    return TaskRead.model_validate(task, from_attributes=True)


@router.post("/tasks/{task_id}/move", response_model=TaskRead)
async def move_task(
    payload: TaskMove,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> TaskRead:
    """Move the task to another column of its board."""
    task = await task_service.move_task(
        session,
        actor_id=auth.user.id,
        task_id=ctx.task.id,
        column_id=payload.column_id,
    )
    return TaskRead.model_validate(task, from_attributes=True)


@router.delete("/tasks/{task_id}", response_model=OkResponse)
async def delete_task(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> OkResponse:
    """Delete a task (board admins, or the creator with edit access)."""
    await task_service.delete_task(
        session,
        actor_id=auth.user.id,
        task_id=ctx.task.id,
        access=ctx.access,
    )
    return OkResponse()


@router.get("/tasks/{task_id}/activity", response_model=DefaultLimitOffsetPage[ActivityRead])
async def list_task_activity(
    session: AsyncSession = SESSION_DEP,
    ctx: TaskContext = TASK_VIEW_DEP,
) -> LimitOffsetPage[ActivityRead]:
    """List the task's activity, newest first."""
    return await paginate(session, task_activity_statement(ctx.task.id))


@router.get("/tasks/{task_id}/comments", response_model=list[CommentRead])
async def list_comments(
    session: AsyncSession = SESSION_DEP,
    ctx: TaskContext = TASK_VIEW_DEP,
) -> list[CommentRead]:
    comments = await comment_service.list_comments(session, task_id=ctx.task.id)
    return [CommentRead.model_validate(comment, from_attributes=True) for comment in comments]


@router.post("/tasks/{task_id}/comments", response_model=CommentRead)
async def add_comment(
    payload: CommentCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> CommentRead:
    comment = await comment_service.add_comment(
        session,
        task_id=ctx.task.id,
        user_id=auth.user.id,
        content=payload.content,
    )
    return CommentRead.model_validate(comment, from_attributes=True)


@router.post("/tasks/{task_id}/attachments/upload-target", response_model=UploadTargetRead)
async def get_upload_target(
    storage: ObjectStorage = STORAGE_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> UploadTargetRead:
    """Ask object storage where to upload a new attachment."""
    target = await storage.get_upload_target()
    return UploadTargetRead(upload_url=target.upload_url, object_path=target.object_path)


@router.get("/tasks/{task_id}/attachments", response_model=list[AttachmentRead])
async def list_attachments(
    session: AsyncSession = SESSION_DEP,
    ctx: TaskContext = TASK_VIEW_DEP,
) -> list[AttachmentRead]:
    attachments = await attachment_service.list_attachments(session, task_id=ctx.task.id)
    return [AttachmentRead.model_validate(item, from_attributes=True) for item in attachments]


@router.post("/tasks/{task_id}/attachments", response_model=AttachmentRead)
async def register_attachment(
    payload: AttachmentCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    storage: ObjectStorage = STORAGE_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> AttachmentRead:
    """Record an uploaded object as a task attachment."""
    attachment = await attachment_service.register_attachment(
        session,
        storage=storage,
        task_id=ctx.task.id,
        user_id=auth.user.id,
        payload=payload,
    )
    return AttachmentRead.model_validate(attachment, from_attributes=True)


@router.get("/tasks/{task_id}/relationships", response_model=list[TaskRelationshipRead])
async def list_relationships(
    session: AsyncSession = SESSION_DEP,
    ctx: TaskContext = TASK_VIEW_DEP,
) -> list[TaskRelationshipRead]:
    links = await relationship_service.list_relationships(session, task_id=ctx.task.id)
    return [TaskRelationshipRead.model_validate(link, from_attributes=True) for link in links]


@router.post("/tasks/{task_id}/relationships", response_model=TaskRelationshipRead)
async def create_relationship(
    payload: TaskRelationshipCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> TaskRelationshipRead:
    link = await relationship_service.create_relationship(
        session,
        actor_id=auth.user.id,
        task_id=ctx.task.id,
        related_task_id=payload.related_task_id,
        relationship_type=payload.relationship_type,
    )
    return TaskRelationshipRead.model_validate(link, from_attributes=True)


@router.delete("/tasks/{task_id}/relationships/{relationship_id}", response_model=OkResponse)
async def delete_relationship(
    relationship_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: TaskContext = TASK_EDIT_DEP,
) -> OkResponse:
    await relationship_service.delete_relationship(
        session,
        task_id=ctx.task.id,
        relationship_id=relationship_id,
    )
    return OkResponse()
