"""Task comments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from kanban.core.errors import ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.comments import Comment

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


async def add_comment(
    session: AsyncSession,
    *,
    task_id: UUID,
    user_id: UUID,
    content: str,
) -> Comment:
    text = content.strip()
    if not text:
        raise ValidationError("Comment must not be empty")
    now = utcnow()
    comment = Comment(
        task_id=task_id,
        user_id=user_id,
        content=text,
        created_at=now,
        updated_at=now,
    )
    await crud.save(session, comment)
    logger.info("task.comment.created task_id=%s comment_id=%s", task_id, comment.id)
    return comment


async def list_comments(session: AsyncSession, *, task_id: UUID) -> list[Comment]:
    return (
        await Comment.objects.filter_by(task_id=task_id)
        .order_by(col(Comment.created_at).asc())
        .all(session)
    )
