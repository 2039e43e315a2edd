"""Typed links between tasks of one organization."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from kanban.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.projects import Project
from kanban.models.task_relationships import RELATIONSHIP_TYPES, TaskRelationship
from kanban.services.permission_resolver import AccessLevel, AccessScope, resolve_access
from kanban.services.tasks import get_task

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


async def _organization_of(session: AsyncSession, project_id: UUID) -> UUID:
    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        raise NotFoundError("Project not found")
    return project.organization_id


async def create_relationship(
    session: AsyncSession,
    *,
    actor_id: UUID,
    task_id: UUID,
    related_task_id: UUID,
    relationship_type: str,
) -> TaskRelationship:
    """Link `task_id` to `related_task_id`; the caller must see both tasks."""
    if relationship_type not in RELATIONSHIP_TYPES:
        raise ValidationError(f"Unknown relationship type: {relationship_type}")
    if task_id == related_task_id:
        raise ValidationError("A task cannot be related to itself")
    task = await get_task(session, task_id=task_id)
    related = await get_task(session, task_id=related_task_id)
    if await _organization_of(session, task.project_id) != await _organization_of(
        session,
        related.project_id,
    ):
        raise ValidationError("Related tasks must belong to the same organization")
    level = await resolve_access(
        session,
        user_id=actor_id,
        scope=AccessScope.board(related.board_id),
    )
    if not level.allows(AccessLevel.VIEW):
        raise ForbiddenError("Related task is not visible to this user")

    link = TaskRelationship(
        task_id=task.id,
        related_task_id=related.id,
        relationship_type=relationship_type,
        created_by_id=actor_id,
        created_at=utcnow(),
    )
    session.add(link)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Relationship already exists") from exc
    await session.refresh(link)
    logger.info(
        "task.relationship.created task_id=%s related_task_id=%s type=%s",
        task.id,
        related.id,
        relationship_type,
    )
    return link


async def list_relationships(session: AsyncSession, *, task_id: UUID) -> list[TaskRelationship]:
    """Return links where the task is on either end."""
    return (
        await TaskRelationship.objects.filter(
            or_(
                col(TaskRelationship.task_id) == task_id,
                col(TaskRelationship.related_task_id) == task_id,
            ),
        )
        .order_by(col(TaskRelationship.created_at).asc())
        .all(session)
    )


async def delete_relationship(
    session: AsyncSession,
    *,
    task_id: UUID,
    relationship_id: UUID,
) -> None:
    link = await TaskRelationship.objects.by_id(relationship_id).first(session)
    if link is None or task_id not in (link.task_id, link.related_task_id):
        raise NotFoundError("Relationship not found")
    await crud.delete_where(session, TaskRelationship, col(TaskRelationship.id) == link.id)
    logger.info("task.relationship.deleted relationship_id=%s", link.id)
