"""Column manager: the ordered column set of each board.

Column orders are unique per board and enforced by a unique index, so every
write here either succeeds as a whole or leaves the previous order intact.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from kanban.core.errors import ConflictError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.board_columns import BoardColumn
from kanban.models.boards import Board
from kanban.models.tasks import Task

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

DEFAULT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Pendiente", "#94a3b8"),
    ("En Progreso", "#60a5fa"),
    ("Completada", "#34d399"),
)
WRITE_ATTEMPTS = 2


def _clean_column_name(name: str | None) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Column name must not be blank")
    return value


async def _require_board(session: AsyncSession, board_id: UUID) -> Board:
    board = await Board.objects.by_id(board_id).first(session)
    if board is None:
        raise NotFoundError("Board not found")
    return board


async def get_column(session: AsyncSession, *, column_id: UUID) -> BoardColumn:
    column = await BoardColumn.objects.by_id(column_id).first(session)
    if column is None:
        raise NotFoundError("Column not found")
    return column


async def list_columns(session: AsyncSession, *, board_id: UUID) -> list[BoardColumn]:
    """Return a board's columns by ascending order."""
    return (
        await BoardColumn.objects.filter_by(board_id=board_id)
        .order_by(col(BoardColumn.order).asc())
        .all(session)
    )


async def _next_order(session: AsyncSession, board_id: UUID) -> int:
    statement = select(func.max(col(BoardColumn.order))).where(
        col(BoardColumn.board_id) == board_id,
    )
    current = (await session.exec(statement)).one()
    return 0 if current is None else int(current) + 1


async def create_column(
    session: AsyncSession,
    *,
    board_id: UUID,
    name: str,
    color: str | None = None,
) -> BoardColumn:
    """Append a column after the board's current last column."""
    clean_name = _clean_column_name(name)
    await _require_board(session, board_id)
    current = await BoardColumn.objects.filter_by(board_id=board_id).all(session)
    # Rejected before any write so the caller's session stays untouched.
    _validate_permutation(ordered_ids, {column.id for column in current})
    for attempt in range(WRITE_ATTEMPTS):
        column = BoardColumn(
            board_id=board_id,
            name=clean_name,
            color=color,
            order=await _next_order(session, board_id),
            created_at=utcnow(),
        )
        session.add(column)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            if attempt + 1 >= WRITE_ATTEMPTS:
                raise ConflictError(
                    "Column order changed concurrently",
                    retryable=True,
                ) from exc
            logger.warning("column.create.retry board_id=%s", board_id)
            continue
        await session.refresh(column)
        logger.info(
            "column.created column_id=%s board_id=%s order=%s",
            column.id,
            board_id,
            column.order,
        )
        return column
    raise ConflictError("Column order changed concurrently", retryable=True)


async def create_default_columns(
    session: AsyncSession,
    *,
    board: Board,
    commit: bool = True,
) -> list[BoardColumn]:
    """Seed a new board with the standard three-column workflow."""
    now = utcnow()
    columns = [
        BoardColumn(board_id=board.id, name=name, color=color, order=index, created_at=now)
        for index, (name, color) in enumerate(DEFAULT_COLUMNS)
    ]
    session.add_all(columns)
    if commit:
        await session.commit()
    else:
        await session.flush()
    return columns


async def rename_column(
    session: AsyncSession,
    *,
    column_id: UUID,
    name: str,
    color: str | None = None,
) -> BoardColumn:
    """Rename a column and optionally change its color."""
    clean_name = _clean_column_name(name)
    column = await get_column(session, column_id=column_id)
    column.name = clean_name
    if color is not None:
        column.color = color
    return await crud.save(session, column)


def _validate_permutation(ordered_ids: Sequence[UUID], existing: set[UUID]) -> None:
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("Column ids must not repeat")
    if set(ordered_ids) != existing:
        raise ValidationError("Column ids must match the board's columns exactly")


async def _apply_order(
    session: AsyncSession,
    *,
    board_id: UUID,
    ordered_ids: Sequence[UUID],
) -> list[BoardColumn]:
    columns = await BoardColumn.objects.filter_by(board_id=board_id).all(session)
    by_id = {column.id: column for column in columns}
    # Validation runs before any write.
    _validate_permutation(ordered_ids, set(by_id))

    # Negative temporaries first so no intermediate row hits a taken order.
    for index, column_id in enumerate(ordered_ids):
        by_id[column_id].order = -1 - index
    await session.flush()
    for index, column_id in enumerate(ordered_ids):
        by_id[column_id].order = index
    await session.flush()
    await session.commit()
    return [by_id[column_id] for column_id in ordered_ids]


async def reorder_columns(
    session: AsyncSession,
    *,
    board_id: UUID,
    ordered_ids: Sequence[UUID],
) -> list[BoardColumn]:
    """Assign `order = index` following `ordered_ids`, atomically."""
    await _require_board(session, board_id)
    for attempt in range(WRITE_ATTEMPTS):
        try:
            columns = await _apply_order(session, board_id=board_id, ordered_ids=ordered_ids)
        except IntegrityError as exc:
            await session.rollback()
            if attempt + 1 >= WRITE_ATTEMPTS:
                raise ConflictError(
                    "Column order changed concurrently",
                    retryable=True,
                ) from exc
            logger.warning("column.reorder.retry board_id=%s", board_id)
            continue
        logger.info("column.reordered board_id=%s count=%s", board_id, len(columns))
        return columns
    raise ConflictError("Column order changed concurrently", retryable=True)


async def delete_column(session: AsyncSession, *, column_id: UUID) -> None:
    """Delete an empty column; remaining orders may have gaps."""
    column = await get_column(session, column_id=column_id)
    if await Task.objects.filter_by(column_id=column.id).exists(session):
        raise ConflictError("Column has dependent tasks")
    try:
        await crud.delete_where(session, BoardColumn, col(BoardColumn.id) == column.id)
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Column has dependent tasks") from exc
    logger.info("column.deleted column_id=%s board_id=%s", column.id, column.board_id)
