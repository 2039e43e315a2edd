"""Project service: organization-owned containers of boards."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlmodel import col

from kanban.core.errors import NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.projects import Project
from kanban.models.tasks import Task
from kanban.services.permission_resolver import AccessLevel, AccessScope, resolve_access

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.schemas.projects import ProjectCreate, ProjectUpdate

logger = get_logger(__name__)


def _clean_project_name(name: str | None) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Project name must not be blank")
    return value


async def get_project(session: AsyncSession, *, project_id: UUID) -> Project:
    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def create_project(
    session: AsyncSession,
    *,
    organization_id: UUID,
    actor_id: UUID,
    payload: ProjectCreate,
) -> Project:
    now = utcnow()
    project = Project(
        organization_id=organization_id,
        name=_clean_project_name(payload.name),
        description=payload.description,
        created_by_id=actor_id,
        created_at=now,
        updated_at=now,
    )
    await crud.save(session, project)
    logger.info("project.created project_id=%s organization_id=%s", project.id, organization_id)
    return project


async def update_project(
    session: AsyncSession,
    *,
    project: Project,
    payload: ProjectUpdate,
) -> Project:
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates:
        project.name = _clean_project_name(updates["name"])
    if "description" in updates:
        project.description = updates["description"]
    project.updated_at = utcnow()
    return await crud.save(session, project)


async def delete_project(session: AsyncSession, *, project: Project) -> None:
    """Delete a project with its boards, columns, tasks, and grants."""
    await crud.delete_where(session, Task, col(Task.project_id) == project.id, commit=False)
    await crud.delete_where(session, Project, col(Project.id) == project.id, commit=False)
    await session.commit()
    logger.info("project.deleted project_id=%s", project.id)


async def list_projects(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
) -> list[Project]:
    """List projects of an organization that the user can at least view."""
    projects = (
        await Project.objects.filter_by(organization_id=organization_id)
        .order_by(func.lower(col(Project.name)).asc())
        .all(session)
    )
    visible: list[Project] = []
    for project in projects:
        level = await resolve_access(session, user_id=user_id, scope=AccessScope.project(project.id))
        if level.allows(AccessLevel.VIEW):
            visible.append(project)
    return visible
