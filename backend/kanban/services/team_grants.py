"""Grant store: team permissions on projects and boards."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from kanban.core.errors import ConflictError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.projects import Project
from kanban.models.team_grants import GRANT_PERMISSIONS, BoardTeamGrant, ProjectTeamGrant
from kanban.models.teams import Team

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.models.boards import Board

logger = get_logger(__name__)

GrantT = TypeVar("GrantT", ProjectTeamGrant, BoardTeamGrant)


def normalize_permission(permission: str) -> str:
    """Validate a grant permission name."""
    value = permission.strip().lower()
    if value not in GRANT_PERMISSIONS:
        raise ValidationError(f"Unknown permission: {permission}")
    return value


async def _require_org_team(
    session: AsyncSession,
    *,
    team_id: UUID,
    organization_id: UUID,
) -> Team:
    team = await Team.objects.by_id(team_id).first(session)
    if team is None or team.organization_id != organization_id:
        raise ValidationError("Team does not belong to this organization")
    return team


async def _insert_grant(session: AsyncSession, grant: GrantT) -> GrantT:
    session.add(grant)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Team already has a grant on this resource") from exc
    await session.refresh(grant)
    return grant


async def _set_permission(session: AsyncSession, grant: GrantT, permission: str) -> GrantT:
    grant.permission = normalize_permission(permission)
    grant.updated_at = utcnow()
    return await crud.save(session, grant)


async def list_project_grants(session: AsyncSession, *, project_id: UUID) -> list[ProjectTeamGrant]:
    return (
        await ProjectTeamGrant.objects.filter_by(project_id=project_id)
        .order_by(col(ProjectTeamGrant.created_at).asc())
        .all(session)
    )


async def grant_project_access(
    session: AsyncSession,
    *,
    project: Project,
    team_id: UUID,
    permission: str,
) -> ProjectTeamGrant:
    """Grant a team access to a project, turning it into an allow-list."""
    normalized = normalize_permission(permission)
    await _require_org_team(session, team_id=team_id, organization_id=project.organization_id)
    existing = await ProjectTeamGrant.objects.filter_by(
        project_id=project.id,
        team_id=team_id,
    ).first(session)
    if existing is not None:
        raise ConflictError("Team already has a grant on this project")
    now = utcnow()
    grant = await _insert_grant(
        session,
        ProjectTeamGrant(
            project_id=project.id,
            team_id=team_id,
            permission=normalized,
            created_at=now,
            updated_at=now,
        ),
    )
    logger.info(
        "grant.project.created project_id=%s team_id=%s permission=%s",
        project.id,
        team_id,
        normalized,
    )
    return grant


async def update_project_grant(
    session: AsyncSession,
    *,
    project_id: UUID,
    team_id: UUID,
    permission: str,
) -> ProjectTeamGrant:
    grant = await ProjectTeamGrant.objects.filter_by(
        project_id=project_id,
        team_id=team_id,
    ).first(session)
    if grant is None:
        raise NotFoundError("Project grant not found")
    return await _set_permission(session, grant, permission)


async def revoke_project_grant(session: AsyncSession, *, project_id: UUID, team_id: UUID) -> None:
    """Remove a team's project grant; no grants left reopens the project."""
    deleted = await crud.delete_where(
        session,
        ProjectTeamGrant,
        col(ProjectTeamGrant.project_id) == project_id,
        col(ProjectTeamGrant.team_id) == team_id,
    )
    if not deleted:
        raise NotFoundError("Project grant not found")
    logger.info("grant.project.revoked project_id=%s team_id=%s", project_id, team_id)


async def list_board_grants(session: AsyncSession, *, board_id: UUID) -> list[BoardTeamGrant]:
    return (
        await BoardTeamGrant.objects.filter_by(board_id=board_id)
        .order_by(col(BoardTeamGrant.created_at).asc())
        .all(session)
    )


async def grant_board_access(
    session: AsyncSession,
    *,
    board: Board,
    team_id: UUID,
    permission: str,
) -> BoardTeamGrant:
    """Grant a team access to a board, overriding project grants."""
    normalized = normalize_permission(permission)
    project = await Project.objects.by_id(board.project_id).first(session)
    if project is None:
        raise NotFoundError("Project not found")
    await _require_org_team(session, team_id=team_id, organization_id=project.organization_id)
    existing = await BoardTeamGrant.objects.filter_by(
        board_id=board.id,
        team_id=team_id,
    ).first(session)
    if existing is not None:
        raise ConflictError("Team already has a grant on this board")
    now = utcnow()
    grant = await _insert_grant(
        session,
        BoardTeamGrant(
            board_id=board.id,
            team_id=team_id,
            permission=normalized,
            created_at=now,
            updated_at=now,
        ),
    )
    logger.info(
        "grant.board.created board_id=%s team_id=%s permission=%s",
        board.id,
        team_id,
        normalized,
    )
    return grant


async def update_board_grant(
    session: AsyncSession,
    *,
    board_id: UUID,
    team_id: UUID,
    permission: str,
) -> BoardTeamGrant:
    grant = await BoardTeamGrant.objects.filter_by(board_id=board_id, team_id=team_id).first(session)
    if grant is None:
        raise NotFoundError("Board grant not found")
    return await _set_permission(session, grant, permission)


async def revoke_board_grant(session: AsyncSession, *, board_id: UUID, team_id: UUID) -> None:
    """Remove a team's board grant; no grants left falls back to the project."""
    deleted = await crud.delete_where(
        session,
        BoardTeamGrant,
        col(BoardTeamGrant.board_id) == board_id,
        col(BoardTeamGrant.team_id) == team_id,
    )
    if not deleted:
        raise NotFoundError("Board grant not found")
    logger.info("grant.board.revoked board_id=%s team_id=%s", board_id, team_id)
