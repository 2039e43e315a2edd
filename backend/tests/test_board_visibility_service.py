# ruff: noqa: INP001
"""Board user listings and cross-organization task visibility."""

from __future__ import annotations

import pytest

from factories import (
    add_member,
    grant_board,
    make_board,
    make_org,
    make_project,
    make_task,
    make_team,
    make_user,
)
from kanban.services import boards as board_service
from kanban.services import tasks as task_service


async def _restricted_workspace(session):
    owner = await make_user(session, email="owner@example.com")
    alice = await make_user(session, email="alice@example.com")
    bob = await make_user(session, email="bob@example.com")
    org = await make_org(session, owner=owner)
    await add_member(session, org, alice)
    await add_member(session, org, bob)
    project = await make_project(session, org, owner)
    restricted, restricted_columns = await make_board(session, project, owner)
    open_board, open_columns = await make_board(session, project, owner)
    team = await make_team(session, org, owner, alice, name="Design")
    await grant_board(session, restricted, team, "view")
    return {
        "owner": owner,
        "alice": alice,
        "bob": bob,
        "restricted": (restricted, restricted_columns),
        "open": (open_board, open_columns),
    }


@pytest.mark.asyncio
async def test_board_users_lists_members_with_view_access(session) -> None:
    ws = await _restricted_workspace(session)
    restricted, _ = ws["restricted"]
    open_board, _ = ws["open"]

    restricted_users = await board_service.list_board_users(session, board=restricted)
    open_users = await board_service.list_board_users(session, board=open_board)

    assert [u.email for u in restricted_users] == ["alice@example.com", "owner@example.com"]
    assert [u.email for u in open_users] == [
        "alice@example.com",
        "bob@example.com",
        "owner@example.com",
    ]


@pytest.mark.asyncio
async def test_visible_board_ids_follow_grants_and_membership(session) -> None:
    ws = await _restricted_workspace(session)
    restricted, _ = ws["restricted"]
    open_board, _ = ws["open"]
    outsider = await make_user(session)

    assert set(await board_service.visible_board_ids(session, user_id=ws["alice"].id)) == {
        restricted.id,
        open_board.id,
    }
    assert await board_service.visible_board_ids(session, user_id=ws["bob"].id) == [open_board.id]
    assert await board_service.visible_board_ids(session, user_id=outsider.id) == []


@pytest.mark.asyncio
async def test_user_tasks_cover_only_visible_boards(session) -> None:
    ws = await _restricted_workspace(session)
    owner, bob = ws["owner"], ws["bob"]
    restricted, restricted_columns = ws["restricted"]
    open_board, open_columns = ws["open"]
    hidden = await make_task(session, restricted, restricted_columns[0], owner, title="Hidden")
    shared = await make_task(session, open_board, open_columns[0], owner, title="Shared")
    other_org = await make_org(session, owner=bob, name="Globex")
    other_project = await make_project(session, other_org, bob)
    other_board, other_columns = await make_board(session, other_project, bob)
    own = await make_task(session, other_board, other_columns[0], bob, title="Own")

    board_ids = await board_service.visible_board_ids(session, user_id=bob.id)
    every = list(await session.exec(task_service.user_tasks_statement(board_ids)))
    created = list(
        await session.exec(task_service.user_tasks_statement(board_ids, created_by_id=bob.id)),
    )

    assert {task.id for task in every} == {shared.id, own.id}
    assert hidden.id not in {task.id for task in every}
    assert [task.id for task in created] == [own.id]
