# ruff: noqa: INP001

from __future__ import annotations

from datetime import timedelta

import pytest

from factories import make_board, make_org, make_project, make_task, make_user
from kanban.core.time import utcnow
from kanban.services.activity import record_activity
from kanban.services.analytics import AnalyticsOverview, analytics_overview


@pytest.mark.asyncio
async def test_overview_counts_due_dates_columns_and_priorities(session) -> None:
    owner = await make_user(session)
    org = await make_org(session, owner=owner)
    project = await make_project(session, org, owner)
    board, (pendiente, en_progreso, completada) = await make_board(session, project, owner)
    now = utcnow()
    late = await make_task(
        session,
        board,
        pendiente,
        owner,
        title="Late",
        priority="high",
        due_date=now - timedelta(days=1),
    )
    await make_task(session, board, en_progreso, owner, title="Soon", due_date=now + timedelta(days=2))
    await make_task(session, board, completada, owner, title="Done", due_date=now - timedelta(days=2))
    await make_task(session, board, pendiente, owner, title="Someday", priority="low")
    entry = await record_activity(
        session,
        task_id=late.id,
        user_id=owner.id,
        action_type="created",
        field_name="task",
        new_value="Late",
    )

    stranger = await make_user(session)
    other_org = await make_org(session, owner=stranger, name="Globex")
    other_project = await make_project(session, other_org, stranger)
    other_board, other_columns = await make_board(session, other_project, stranger)
    await make_task(session, other_board, other_columns[0], stranger, due_date=now - timedelta(days=1))

    overview = await analytics_overview(session, user_id=owner.id, now=now)

    assert overview.total_tasks == 4
    assert overview.overdue_tasks == 1
    assert overview.upcoming_due_tasks == 1
    assert overview.completed_last_7_days == 1
    assert overview.tasks_by_column == [("Completada", 1), ("En Progreso", 1), ("Pendiente", 2)]
    assert overview.tasks_by_priority == [("high", 1), ("low", 1), ("medium", 2)]
    assert [item.id for item in overview.recent_activity] == [entry.id]


@pytest.mark.asyncio
async def test_overview_treats_last_column_as_done_whatever_its_name(session) -> None:
    owner = await make_user(session)
    org = await make_org(session, owner=owner)
    project = await make_project(session, org, owner)
    board, (todo, shipped) = await make_board(
        session,
        project,
        owner,
        column_names=("Todo", "Shipped"),
    )
    now = utcnow()
    await make_task(session, board, shipped, owner, due_date=now - timedelta(days=1))
    await make_task(session, board, todo, owner, due_date=now - timedelta(days=1))

    overview = await analytics_overview(session, user_id=owner.id, now=now)

    assert overview.overdue_tasks == 1
    assert overview.completed_last_7_days == 1


@pytest.mark.asyncio
async def test_overview_is_empty_without_memberships(session) -> None:
    loner = await make_user(session)

    assert await analytics_overview(session, user_id=loner.id) == AnalyticsOverview()
