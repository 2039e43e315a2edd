"""Board service: boards inside a project, seeded with default columns."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlmodel import col, select

from kanban.core.errors import NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.boards import Board
from kanban.models.organization_members import OrganizationMember
from kanban.models.projects import Project
from kanban.models.tasks import Task
from kanban.models.users import User
from kanban.services.columns import create_default_columns
from kanban.services.permission_resolver import AccessLevel, AccessScope, resolve_access

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.schemas.boards import BoardCreate, BoardUpdate

logger = get_logger(__name__)


def _clean_board_name(name: str | None) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Board name must not be blank")
    return value


async def get_board(session: AsyncSession, *, board_id: UUID) -> Board:
    board = await Board.objects.by_id(board_id).first(session)
    if board is None:
        raise NotFoundError("Board not found")
    return board


async def create_board(
    session: AsyncSession,
    *,
    project: Project,
    actor_id: UUID,
    payload: BoardCreate,
) -> Board:
    """Create a board and its default columns in one transaction."""
    now = utcnow()
    board = Board(
        project_id=project.id,
        name=_clean_board_name(payload.name),
        description=payload.description,
        created_by_id=actor_id,
        created_at=now,
        updated_at=now,
    )
    session.add(board)
    await session.flush()
    await create_default_columns(session, board=board, commit=False)
    await session.commit()
    await session.refresh(board)
    logger.info("board.created board_id=%s project_id=%s", board.id, project.id)
    return board


async def update_board(session: AsyncSession, *, board: Board, payload: BoardUpdate) -> Board:
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates:
        board.name = _clean_board_name(updates["name"])
    if "description" in updates:
        board.description = updates["description"]
    board.updated_at = utcnow()
    return await crud.save(session, board)


async def delete_board(session: AsyncSession, *, board: Board) -> None:
    """Delete a board with its columns, tasks, and grants."""
    await crud.delete_where(session, Task, col(Task.board_id) == board.id, commit=False)
    await crud.delete_where(session, Board, col(Board.id) == board.id, commit=False)
    await session.commit()
    logger.info("board.deleted board_id=%s project_id=%s", board.id, board.project_id)


async def list_boards(session: AsyncSession, *, project_id: UUID, user_id: UUID) -> list[Board]:
    """List a project's boards that the user can at least view."""
    boards = (
        await Board.objects.filter_by(project_id=project_id)
        .order_by(func.lower(col(Board.name)).asc())
        .all(session)
    )
    visible: list[Board] = []
    for board in boards:
        level = await resolve_access(session, user_id=user_id, scope=AccessScope.board(board.id))
        if level.allows(AccessLevel.VIEW):
            visible.append(board)
    return visible


async def list_board_users(session: AsyncSession, *, board: Board) -> list[User]:
    """Return organization members who can at least view the board.

    This is the candidate list for task assignment.
    """
    project = await Project.objects.by_id(board.project_id).first(session)
    if project is None:
        raise NotFoundError("Project not found")
    members = await OrganizationMember.objects.filter_by(
        organization_id=project.organization_id,
    ).all(session)
    scope = AccessScope.board(board.id)
    user_ids: list[UUID] = []
    for member in members:
        level = await resolve_access(session, user_id=member.user_id, scope=scope)
        if level.allows(AccessLevel.VIEW):
            user_ids.append(member.user_id)
    if not user_ids:
        return []
    return await User.objects.by_ids(user_ids).order_by(col(User.email).asc()).all(session)


async def visible_board_ids(session: AsyncSession, *, user_id: UUID) -> list[UUID]:
    """Return ids of every board, across the user's organizations, they can view."""
    member_org_ids = select(OrganizationMember.organization_id).where(
        col(OrganizationMember.user_id) == user_id,
    )
    statement = (
        select(Board.id)
        .join(Project, col(Project.id) == col(Board.project_id))
        .where(col(Project.organization_id).in_(member_org_ids))
    )
    board_ids = list(await session.exec(statement))
    visible: list[UUID] = []
    for board_id in board_ids:
        level = await resolve_access(session, user_id=user_id, scope=AccessScope.board(board_id))
        if level.allows(AccessLevel.VIEW):
            visible.append(board_id)
    return visible
