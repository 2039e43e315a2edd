"""Task attachments: metadata rows pointing at stored objects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from kanban.core.errors import ForbiddenError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.attachments import Attachment

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.schemas.tasks import AttachmentCreate
    from kanban.services.object_storage import ObjectStorage

logger = get_logger(__name__)


async def register_attachment(
    session: AsyncSession,
    *,
    storage: ObjectStorage,
    task_id: UUID,
    user_id: UUID,
    payload: AttachmentCreate,
) -> Attachment:
    """Attach an already-uploaded object to a task.

    The storage service decides whether the caller may write the object; an
    object path the caller cannot write is rejected.
    """
    file_name = payload.file_name.strip()
    object_path = payload.object_path.strip()
    if not file_name or not object_path:
        raise ValidationError("file_name and object_path are required")
    if payload.file_size is not None and payload.file_size < 0:
        raise ValidationError("file_size must not be negative")
    if not await storage.can_access(object_path, user_id, "write"):
        raise ForbiddenError("Uploaded object is not accessible to this user")
    attachment = Attachment(
        task_id=task_id,
        user_id=user_id,
        file_name=file_name,
        object_path=object_path,
        file_size=payload.file_size,
        mime_type=payload.mime_type,
        created_at=utcnow(),
    )
    await crud.save(session, attachment)
    logger.info("task.attachment.created task_id=%s attachment_id=%s", task_id, attachment.id)
    return attachment


async def list_attachments(session: AsyncSession, *, task_id: UUID) -> list[Attachment]:
    return (
        await Attachment.objects.filter_by(task_id=task_id)
        .order_by(col(Attachment.created_at).asc())
        .all(session)
    )
