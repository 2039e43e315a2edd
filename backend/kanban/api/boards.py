"""Board, board grant, and column endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter

from kanban.api.deps import (
    AUTH_DEP,
    BOARD_ADMIN_DEP,
    BOARD_EDIT_DEP,
    BOARD_VIEW_DEP,
    COLUMN_EDIT_DEP,
    PROJECT_EDIT_DEP,
    PROJECT_VIEW_DEP,
    SESSION_DEP,
    BoardContext,
)
from kanban.schemas.boards import (
    BoardAccessRead,
    BoardCreate,
    BoardRead,
    BoardUpdate,
    ColumnCreate,
    ColumnRead,
    ColumnReorder,
    ColumnUpdate,
)
from kanban.schemas.common import OkResponse
from kanban.schemas.teams import BoardTeamGrantRead, TeamGrantCreate, TeamGrantUpdate
from kanban.schemas.users import UserRead
from kanban.services import boards as board_service
from kanban.services import columns as column_service
from kanban.services import team_grants as grant_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext
    from kanban.models.board_columns import BoardColumn
    from kanban.models.projects import Project

router = APIRouter(tags=["boards"])


@router.get("/projects/{project_id}/boards", response_model=list[BoardRead])
async def list_boards(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    project: Project = PROJECT_VIEW_DEP,
) -> list[BoardRead]:
    """List the project's boards that the caller can view."""
    boards = await board_service.list_boards(session, project_id=project.id, user_id=auth.user.id)
    return [BoardRead.model_validate(board, from_attributes=True) for board in boards]


@router.post("/projects/{project_id}/boards", response_model=BoardRead)
async def create_board(
    payload: BoardCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    project: Project = PROJECT_EDIT_DEP,
) -> BoardRead:
    """Create a board seeded with the default columns."""
    board = await board_service.create_board(
        session,
        project=project,
        actor_id=auth.user.id,
        payload=payload,
    )
    return BoardRead.model_validate(board, from_attributes=True)


@router.get("/boards/{board_id}", response_model=BoardRead)
async def get_board(ctx: BoardContext = BOARD_VIEW_DEP) -> BoardRead:
    return BoardRead.model_validate(ctx.board, from_attributes=True)


@router.get("/boards/{board_id}/access", response_model=BoardAccessRead)
async def get_board_access(ctx: BoardContext = BOARD_VIEW_DEP) -> BoardAccessRead:
    """Return the caller's resolved access level on the board."""
    return BoardAccessRead(board_id=ctx.board.id, access=ctx.access.value)


@router.get("/boards/{board_id}/users", response_model=list[UserRead])
async def list_board_users(
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_VIEW_DEP,
) -> list[UserRead]:
    """List organization members who can view the board, for assignment."""
    users = await board_service.list_board_users(session, board=ctx.board)
    return [UserRead.model_validate(user, from_attributes=True) for user in users]


@router.patch("/boards/{board_id}", response_model=BoardRead)
async def update_board(
    payload: BoardUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_ADMIN_DEP,
) -> BoardRead:
    board = await board_service.update_board(session, board=ctx.board, payload=payload)
    return BoardRead.model_validate(board, from_attributes=True)


@router.delete("/boards/{board_id}", response_model=OkResponse)
async def delete_board(
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_ADMIN_DEP,
) -> OkResponse:
    await board_service.delete_board(session, board=ctx.board)
    return OkResponse()


@router.get("/boards/{board_id}/grants", response_model=list[BoardTeamGrantRead])
async def list_board_grants(
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_VIEW_DEP,
) -> list[BoardTeamGrantRead]:
    grants = await grant_service.list_board_grants(session, board_id=ctx.board.id)
    return [BoardTeamGrantRead.model_validate(grant, from_attributes=True) for grant in grants]


@router.post("/boards/{board_id}/grants", response_model=BoardTeamGrantRead)
async def grant_board_access(
    payload: TeamGrantCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_ADMIN_DEP,
) -> BoardTeamGrantRead:
    """Grant a team access; the board becomes restricted to granted teams."""
    grant = await grant_service.grant_board_access(
        session,
        board=ctx.board,
        team_id=payload.team_id,
        permission=payload.permission,
    )
    return BoardTeamGrantRead.model_validate(grant, from_attributes=True)


@router.patch("/boards/{board_id}/grants/{team_id}", response_model=BoardTeamGrantRead)
async def update_board_grant(
    team_id: UUID,
    payload: TeamGrantUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_ADMIN_DEP,
) -> BoardTeamGrantRead:
    grant = await grant_service.update_board_grant(
        session,
        board_id=ctx.board.id,
        team_id=team_id,
        permission=payload.permission,
    )
    return BoardTeamGrantRead.model_validate(grant, from_attributes=True)


@router.delete("/boards/{board_id}/grants/{team_id}", response_model=OkResponse)
async def revoke_board_grant(
    team_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_ADMIN_DEP,
) -> OkResponse:
    """Revoke a grant; with none left the board follows its project again."""
    await grant_service.revoke_board_grant(session, board_id=ctx.board.id, team_id=team_id)
    return OkResponse()


@router.get("/boards/{board_id}/columns", response_model=list[ColumnRead])
async def list_columns(
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_VIEW_DEP,
) -> list[ColumnRead]:
    columns = await column_service.list_columns(session, board_id=ctx.board.id)
    return [ColumnRead.model_validate(column, from_attributes=True) for column in columns]


@router.post("/boards/{board_id}/columns", response_model=ColumnRead)
async def create_column(
    payload: ColumnCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_EDIT_DEP,
) -> ColumnRead:
    """Append a column at the end of the board."""
    column = await column_service.create_column(
        session,
        board_id=ctx.board.id,
        name=payload.name,
        color=payload.color,
    )
    return ColumnRead.model_validate(column, from_attributes=True)


@router.put("/boards/{board_id}/columns/order", response_model=list[ColumnRead])
async def reorder_columns(
    payload: ColumnReorder,
    session: AsyncSession = SESSION_DEP,
    ctx: BoardContext = BOARD_EDIT_DEP,
) -> list[ColumnRead]:
    """Rewrite column order from the full ordered id list."""
    columns = await column_service.reorder_columns(
        session,
        board_id=ctx.board.id,
        ordered_ids=payload.column_ids,
    )
    return [ColumnRead.model_validate(column, from_attributes=True) for column in columns]


@router.patch("/columns/{column_id}", response_model=ColumnRead)
async def rename_column(
    payload: ColumnUpdate,
    session: AsyncSession = SESSION_DEP,
    column: BoardColumn = COLUMN_EDIT_DEP,
) -> ColumnRead:
    updated = await column_service.rename_column(
        session,
        column_id=column.id,
        name=payload.name,
        color=payload.color,
    )
    return ColumnRead.model_validate(updated, from_attributes=True)


@router.delete("/columns/{column_id}", response_model=OkResponse)
async def delete_column(
    session: AsyncSession = SESSION_DEP,
    column: BoardColumn = COLUMN_EDIT_DEP,
) -> OkResponse:
    """Delete an empty column; 409 while tasks still reference it."""
    await column_service.delete_column(session, column_id=column.id)
    return OkResponse()
