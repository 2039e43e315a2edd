"""Workload overview across every board a user can view.

A task counts as completed while it sits in its board's last column (the one
with the highest `order`). Overdue and upcoming counts skip completed tasks.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlmodel import col, select

from kanban.core.time import utcnow
from kanban.models.activity_log import ActivityLogEntry
from kanban.models.board_columns import BoardColumn
from kanban.models.tasks import Task
from kanban.services.boards import visible_board_ids

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

UPCOMING_WINDOW = timedelta(days=3)
COMPLETED_WINDOW = timedelta(days=7)
RECENT_ACTIVITY_LIMIT = 10


@dataclass
class AnalyticsOverview:
    """Aggregated counts for the caller's visible tasks."""

    total_tasks: int = 0
    overdue_tasks: int = 0
    upcoming_due_tasks: int = 0
    completed_last_7_days: int = 0
    tasks_by_column: list[tuple[str, int]] = field(default_factory=list)
    tasks_by_priority: list[tuple[str, int]] = field(default_factory=list)
    recent_activity: list[ActivityLogEntry] = field(default_factory=list)


async def _final_column_ids(session: AsyncSession, board_ids: Sequence[UUID]) -> list[UUID]:
    columns = await BoardColumn.objects.filter(
        col(BoardColumn.board_id).in_(list(board_ids)),
    ).all(session)
    last: dict[UUID, BoardColumn] = {}
    for column in columns:
        current = last.get(column.board_id)
        if current is None or column.order > current.order:
            last[column.board_id] = column
    return [column.id for column in last.values()]


async def _count(session: AsyncSession, *criteria: Any) -> int:
    statement = select(func.count(col(Task.id))).where(*criteria)
    return int((await session.exec(statement)).one() or 0)


async def _tasks_by_column(
    session: AsyncSession,
    board_ids: Sequence[UUID],
) -> list[tuple[str, int]]:
    statement = (
        select(BoardColumn.name, func.count(col(Task.id)))
        .select_from(Task)
        .join(BoardColumn, col(BoardColumn.id) == col(Task.column_id))
        .where(col(Task.board_id).in_(list(board_ids)))
        .group_by(col(BoardColumn.name))
    )
    totals: dict[str, int] = defaultdict(int)
    for name, count in list(await session.exec(statement)):
        totals[name] += int(count or 0)
    return sorted(totals.items())


async def _tasks_by_priority(
    session: AsyncSession,
    board_ids: Sequence[UUID],
) -> list[tuple[str, int]]:
    statement = (
        select(Task.priority, func.count(col(Task.id)))
        .where(col(Task.board_id).in_(list(board_ids)))
        .group_by(col(Task.priority))
    )
    rows = list(await session.exec(statement))
    return sorted((priority, int(count or 0)) for priority, count in rows)


async def _recent_activity(
    session: AsyncSession,
    board_ids: Sequence[UUID],
) -> list[ActivityLogEntry]:
    statement = (
        select(ActivityLogEntry)
        .join(Task, col(Task.id) == col(ActivityLogEntry.task_id))
        .where(col(Task.board_id).in_(list(board_ids)))
        .order_by(col(ActivityLogEntry.created_at).desc(), col(ActivityLogEntry.id).desc())
        .limit(RECENT_ACTIVITY_LIMIT)
    )
    return list(await session.exec(statement))


async def analytics_overview(
    session: AsyncSession,
    *,
    user_id: UUID,
    now: datetime | None = None,
) -> AnalyticsOverview:
    """Summarize the tasks on every board `user_id` can view."""
    board_ids = await visible_board_ids(session, user_id=user_id)
    if not board_ids:
        return AnalyticsOverview()
    now = now or utcnow()
    on_boards = col(Task.board_id).in_(board_ids)
    final_ids = await _final_column_ids(session, board_ids)
    open_task = col(Task.column_id).not_in(final_ids)
    due = col(Task.due_date)
    return AnalyticsOverview(
        total_tasks=await _count(session, on_boards),
        overdue_tasks=await _count(session, on_boards, open_task, due < now),
        upcoming_due_tasks=await _count(
            session,
            on_boards,
            open_task,
            due >= now,
            due <= now + UPCOMING_WINDOW,
        ),
        completed_last_7_days=await _count(
            session,
            on_boards,
            col(Task.column_id).in_(final_ids),
            col(Task.updated_at) >= now - COMPLETED_WINDOW,
        ),
        tasks_by_column=await _tasks_by_column(session, board_ids),
        tasks_by_priority=await _tasks_by_priority(session, board_ids),
        recent_activity=await _recent_activity(session, board_ids),
    )
