# ruff: noqa: INP001
"""Column ordering, creation, rename, and deletion rules."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from factories import make_board, make_org, make_project, make_task, make_user
from kanban.core.errors import ConflictError, NotFoundError, ValidationError
from kanban.schemas.boards import BoardCreate
from kanban.services import columns as columns_service
from kanban.services.boards import create_board


async def _board(session, **kwargs):
    owner = await make_user(session)
    org = await make_org(session, owner=owner)
    project = await make_project(session, org, owner)
    board, columns = await make_board(session, project, owner, **kwargs)
    return owner, board, columns


@pytest.mark.asyncio
async def test_create_board_seeds_default_columns(session) -> None:
    owner = await make_user(session)
    org = await make_org(session, owner=owner)
    project = await make_project(session, org, owner)

    board = await create_board(
        session,
        project=project,
        actor_id=owner.id,
        payload=BoardCreate(name="Roadmap"),
    )
    columns = await columns_service.list_columns(session, board_id=board.id)

    assert [(c.name, c.order, c.color) for c in columns] == [
        ("Pendiente", 0, "#94a3b8"),
        ("En Progreso", 1, "#60a5fa"),
        ("Completada", 2, "#34d399"),
    ]


@pytest.mark.asyncio
async def test_create_column_appends_after_highest_order(session) -> None:
    _, board, _ = await _board(session)

    column = await columns_service.create_column(session, board_id=board.id, name="  Review ")

    assert column.name == "Review"
    assert column.order == 3


@pytest.mark.asyncio
async def test_create_column_on_empty_board_starts_at_zero(session) -> None:
    _, board, _ = await _board(session, column_names=())

    column = await columns_service.create_column(session, board_id=board.id, name="Backlog")

    assert column.order == 0


@pytest.mark.asyncio
async def test_create_column_rejects_blank_name_and_missing_board(session) -> None:
    _, board, _ = await _board(session)

    with pytest.raises(ValidationError):
        await columns_service.create_column(session, board_id=board.id, name="   ")
    with pytest.raises(NotFoundError):
        await columns_service.create_column(session, board_id=uuid4(), name="Backlog")


@pytest.mark.asyncio
async def test_reorder_assigns_positions_from_list(session) -> None:
    _, board, (todo, doing, done) = await _board(session)

    result = await columns_service.reorder_columns(
        session,
        board_id=board.id,
        ordered_ids=[done.id, todo.id, doing.id],
    )

    assert [c.id for c in result] == [done.id, todo.id, doing.id]
    listed = await columns_service.list_columns(session, board_id=board.id)
    assert [(c.id, c.order) for c in listed] == [(done.id, 0), (todo.id, 1), (doing.id, 2)]


@pytest.mark.asyncio
async def test_reorder_with_current_order_is_a_no_op(session) -> None:
    _, board, columns = await _board(session)
    ordered_ids = [c.id for c in columns]

    await columns_service.reorder_columns(session, board_id=board.id, ordered_ids=ordered_ids)
    await columns_service.reorder_columns(session, board_id=board.id, ordered_ids=ordered_ids)

    listed = await columns_service.list_columns(session, board_id=board.id)
    assert [(c.id, c.order) for c in listed] == [(cid, i) for i, cid in enumerate(ordered_ids)]


@pytest.mark.asyncio
@pytest.mark.parametrize("shape", ["missing", "duplicate", "foreign"])
async def test_reorder_rejects_non_permutations(session, shape: str) -> None:
    _, board, columns = await _board(session)
    original_ids = [c.id for c in columns]
    first, second, _ = original_ids
    ordered_ids = {
        "missing": [first, second],
        "duplicate": [first, second, second],
        "foreign": [first, second, uuid4()],
    }[shape]

    with pytest.raises(ValidationError):
        await columns_service.reorder_columns(
            session,
            board_id=board.id,
            ordered_ids=ordered_ids,
        )

    # Loaded instances stay usable after a rejected reorder.
    assert [c.order for c in columns] == [0, 1, 2]
    listed = await columns_service.list_columns(session, board_id=board.id)
    assert [c.id for c in listed] == original_ids


@pytest.mark.asyncio
async def test_reorder_retries_once_then_reports_retryable_conflict(
    session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _, board, columns = await _board(session)
    calls: list[int] = []

    async def _collide(*_args, **_kwargs):
        calls.append(1)
        raise IntegrityError("UPDATE board_columns", {}, Exception("duplicate order"))

    monkeypatch.setattr(columns_service, "_apply_order", _collide)

    with pytest.raises(ConflictError) as exc_info:
        await columns_service.reorder_columns(
            session,
            board_id=board.id,
            ordered_ids=[c.id for c in columns],
        )

    assert len(calls) == columns_service.WRITE_ATTEMPTS
    assert exc_info.value.retryable is True
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_reorder_succeeds_after_single_collision(
    session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _, board, (todo, doing, done) = await _board(session)
    real_apply = columns_service._apply_order
    calls: list[int] = []

    async def _collide_once(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            raise IntegrityError("UPDATE board_columns", {}, Exception("duplicate order"))
        return await real_apply(*args, **kwargs)

    monkeypatch.setattr(columns_service, "_apply_order", _collide_once)

    result = await columns_service.reorder_columns(
        session,
        board_id=board.id,
        ordered_ids=[doing.id, done.id, todo.id],
    )

    assert len(calls) == 2
    assert [c.order for c in result] == [0, 1, 2]


@pytest.mark.asyncio
async def test_rename_column(session) -> None:
    _, _, (todo, _, _) = await _board(session)

    renamed = await columns_service.rename_column(
        session,
        column_id=todo.id,
        name="Backlog",
        color="#000000",
    )

    assert renamed.name == "Backlog"
    assert renamed.color == "#000000"
    assert renamed.order == 0
    with pytest.raises(ValidationError):
        await columns_service.rename_column(session, column_id=todo.id, name=" ")
    with pytest.raises(NotFoundError):
        await columns_service.rename_column(session, column_id=uuid4(), name="Backlog")


@pytest.mark.asyncio
async def test_delete_column_with_tasks_conflicts(session) -> None:
    owner, board, (todo, _, _) = await _board(session)
    await make_task(session, board, todo, owner)

    with pytest.raises(ConflictError):
        await columns_service.delete_column(session, column_id=todo.id)

    listed = await columns_service.list_columns(session, board_id=board.id)
    assert todo.id in {c.id for c in listed}


@pytest.mark.asyncio
async def test_delete_empty_column_leaves_order_gap(session) -> None:
    _, board, (todo, doing, done) = await _board(session)

    await columns_service.delete_column(session, column_id=doing.id)

    listed = await columns_service.list_columns(session, board_id=board.id)
    assert [(c.id, c.order) for c in listed] == [(todo.id, 0), (done.id, 2)]
    with pytest.raises(NotFoundError):
        await columns_service.delete_column(session, column_id=doing.id)
