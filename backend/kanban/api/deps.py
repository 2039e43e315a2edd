"""Reusable FastAPI dependencies: the policy wiring layer of the API.

They resolve the authenticated caller, load the addressed resource (or 404),
and enforce the minimum access level through ``require_access``. Routers
compose these instead of checking permissions themselves.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends

from kanban.core.auth import AuthContext, get_auth_context
from kanban.core.errors import ForbiddenError, NotFoundError
from kanban.db.session import get_session
from kanban.models.board_columns import BoardColumn
from kanban.models.organizations import Organization
from kanban.models.teams import Team
from kanban.services.boards import get_board
from kanban.services.organizations import get_member, is_org_admin
from kanban.services.permission_resolver import AccessLevel, AccessScope, require_access
from kanban.services.projects import get_project
from kanban.services.tasks import get_task

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.models.boards import Board
    from kanban.models.organization_members import OrganizationMember
    from kanban.models.projects import Project
    from kanban.models.tasks import Task

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)


@dataclass(frozen=True)
class OrganizationContext:
    """Organization addressed by the request and the caller's membership."""

    organization: Organization
    member: OrganizationMember


@dataclass(frozen=True)
class BoardContext:
    """Board addressed by the request and the caller's resolved access."""

    board: Board
    access: AccessLevel


@dataclass(frozen=True)
class TaskContext:
    """Task addressed by the request and the caller's access on its board."""

    task: Task
    access: AccessLevel


async def require_org_member(
    organization_id: UUID,
    auth: AuthContext = AUTH_DEP,
    session: AsyncSession = SESSION_DEP,
) -> OrganizationContext:
    """Require organization membership for the current user."""
    organization = await Organization.objects.by_id(organization_id).first(session)
    if organization is None:
        raise NotFoundError("Organization not found")
    member = await get_member(session, user_id=auth.user.id, organization_id=organization.id)
    if member is None:
        raise ForbiddenError("Not a member of this organization")
    return OrganizationContext(organization=organization, member=member)


ORG_MEMBER_DEP = Depends(require_org_member)


async def require_org_admin(ctx: OrganizationContext = ORG_MEMBER_DEP) -> OrganizationContext:
    """Require owner or admin role."""
    if not is_org_admin(ctx.member):
        raise ForbiddenError("Organization admin access required")
    return ctx


async def require_org_owner(ctx: OrganizationContext = ORG_MEMBER_DEP) -> OrganizationContext:
    if ctx.member.role != "owner":
        raise ForbiddenError("Organization owner access required")
    return ctx


ORG_ADMIN_DEP = Depends(require_org_admin)


async def get_team_for_admin(
    team_id: UUID,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
    session: AsyncSession = SESSION_DEP,
) -> Team:
    """Load a team of the addressed organization for an org admin."""
    team = await Team.objects.by_id(team_id).first(session)
    if team is None or team.organization_id != ctx.organization.id:
        raise NotFoundError("Team not found")
    return team


def project_access(minimum: AccessLevel) -> Callable[..., Awaitable[Project]]:
    """Build a dependency loading a project and requiring `minimum` on it."""

    async def _dependency(
        project_id: UUID,
        auth: AuthContext = AUTH_DEP,
        session: AsyncSession = SESSION_DEP,
    ) -> Project:
        project = await get_project(session, project_id=project_id)
        await require_access(
            session,
            user_id=auth.user.id,
            scope=AccessScope.project(project.id),
            minimum=minimum,
        )
        return project

    return _dependency


def board_access(minimum: AccessLevel) -> Callable[..., Awaitable[BoardContext]]:
    """Build a dependency loading a board and requiring `minimum` on it."""

    async def _dependency(
        board_id: UUID,
        auth: AuthContext = AUTH_DEP,
        session: AsyncSession = SESSION_DEP,
    ) -> BoardContext:
        board = await get_board(session, board_id=board_id)
        level = await require_access(
            session,
            user_id=auth.user.id,
            scope=AccessScope.board(board.id),
            minimum=minimum,
        )
        return BoardContext(board=board, access=level)

    return _dependency


def task_access(minimum: AccessLevel) -> Callable[..., Awaitable[TaskContext]]:
    """Build a dependency loading a task and requiring `minimum` on its board."""

    async def _dependency(
        task_id: UUID,
        auth: AuthContext = AUTH_DEP,
        session: AsyncSession = SESSION_DEP,
    ) -> TaskContext:
        task = await get_task(session, task_id=task_id)
        level = await require_access(
            session,
            user_id=auth.user.id,
            scope=AccessScope.board(task.board_id),
            minimum=minimum,
        )
        return TaskContext(task=task, access=level)

    return _dependency


async def get_column_for_edit(
    column_id: UUID,
    auth: AuthContext = AUTH_DEP,
    session: AsyncSession = SESSION_DEP,
) -> BoardColumn:
    """Load a column and require `edit` on its board."""
    column = await BoardColumn.objects.by_id(column_id).first(session)
    if column is None:
        raise NotFoundError("Column not found")
    await require_access(
        session,
        user_id=auth.user.id,
        scope=AccessScope.board(column.board_id),
        minimum=AccessLevel.EDIT,
    )
    return column


PROJECT_VIEW_DEP = Depends(project_access(AccessLevel.VIEW))
PROJECT_EDIT_DEP = Depends(project_access(AccessLevel.EDIT))
PROJECT_ADMIN_DEP = Depends(project_access(AccessLevel.ADMIN))
BOARD_VIEW_DEP = Depends(board_access(AccessLevel.VIEW))
BOARD_EDIT_DEP = Depends(board_access(AccessLevel.EDIT))
BOARD_ADMIN_DEP = Depends(board_access(AccessLevel.ADMIN))
TASK_VIEW_DEP = Depends(task_access(AccessLevel.VIEW))
TASK_EDIT_DEP = Depends(task_access(AccessLevel.EDIT))
COLUMN_EDIT_DEP = Depends(get_column_for_edit)
