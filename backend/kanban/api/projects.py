"""Project endpoints and project team grants."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter

from kanban.api.deps import (
    AUTH_DEP,
    ORG_MEMBER_DEP,
    PROJECT_ADMIN_DEP,
    PROJECT_VIEW_DEP,
    SESSION_DEP,
    OrganizationContext,
)
from kanban.schemas.common import OkResponse
from kanban.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from kanban.schemas.teams import ProjectTeamGrantRead, TeamGrantCreate, TeamGrantUpdate
from kanban.services import projects as project_service
from kanban.services import team_grants as grant_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext
    from kanban.models.projects import Project

router = APIRouter(tags=["projects"])


@router.get("/organizations/{organization_id}/projects", response_model=list[ProjectRead])
async def list_projects(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> list[ProjectRead]:
    """List projects in the organization that the caller can view."""
    projects = await project_service.list_projects(
        session,
        organization_id=ctx.organization.id,
        user_id=auth.user.id,
    )
    return [ProjectRead.model_validate(project, from_attributes=True) for project in projects]


@router.post("/organizations/{organization_id}/projects", response_model=ProjectRead)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> ProjectRead:
    project = await project_service.create_project(
        session,
        organization_id=ctx.organization.id,
        actor_id=ctx.member.user_id,
        payload=payload,
    )
    return ProjectRead.model_validate(project, from_attributes=True)


@router.get("/projects/{project_id}", response_model=ProjectRead)
async def get_project(project: Project = PROJECT_VIEW_DEP) -> ProjectRead:
    return ProjectRead.model_validate(project, from_attributes=True)


@router.patch("/projects/{project_id}", response_model=ProjectRead)
async def update_project(
    payload: ProjectUpdate,
    session: AsyncSession = SESSION_DEP,
    project: Project = PROJECT_ADMIN_DEP,
) -> ProjectRead:
    updated = await project_service.update_project(session, project=project, payload=payload)
    return ProjectRead.model_validate(updated, from_attributes=True)


@router.delete("/projects/{project_id}", response_model=OkResponse)
async def delete_project(
    session: AsyncSession = SESSION_DEP,
    project: Project = PROJECT_ADMIN_DEP,
) -> OkResponse:
    """Delete the project with all boards and tasks."""
    await project_service.delete_project(session, project=project)
    return OkResponse()


@router.get("/projects/{project_id}/grants", response_model=list[ProjectTeamGrantRead])
async def list_project_grants(
    session: AsyncSession = SESSION_DEP,
    project: Project = PROJECT_VIEW_DEP,
) -> list[ProjectTeamGrantRead]:
    grants = await grant_service.list_project_grants(session, project_id=project.id)
    return [ProjectTeamGrantRead.model_validate(grant, from_attributes=True) for grant in grants]


@router.post("/projects/{project_id}/grants", response_model=ProjectTeamGrantRead)
async def grant_project_access(
    payload: TeamGrantCreate,
    session: AsyncSession = SESSION_DEP,
    project: Project = PROJECT_ADMIN_DEP,
) -> ProjectTeamGrantRead:
    """Grant a team access; the project becomes restricted to granted teams."""
    grant = await grant_service.grant_project_access(
        session,
        project=project,
        team_id=payload.team_id,
        permission=payload.permission,
    )
    return ProjectTeamGrantRead.model_validate(grant, from_attributes=True)


@router.patch("/projects/{project_id}/grants/{team_id}", response_model=ProjectTeamGrantRead)
async def update_project_grant(
    team_id: UUID,
    payload: TeamGrantUpdate,
    session: AsyncSession = SESSION_DEP,
    project: Project = PROJECT_ADMIN_DEP,
) -> ProjectTeamGrantRead:
    grant = await grant_service.update_project_grant(
        session,
        project_id=project.id,
        team_id=team_id,
        permission=payload.permission,
    )
    return ProjectTeamGrantRead.model_validate(grant, from_attributes=True)


@router.delete("/projects/{project_id}/grants/{team_id}", response_model=OkResponse)
async def revoke_project_grant(
    team_id: UUID,
    session: AsyncSession = SESSION_DEP,
    project: Project = PROJECT_ADMIN_DEP,
) -> OkResponse:
    await grant_service.revoke_project_grant(session, project_id=project.id, team_id=team_id)
    return OkResponse()
