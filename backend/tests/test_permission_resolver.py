# ruff: noqa: INP001
"""Access-level resolution across organization, project, and board scopes."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

import pytest
from sqlmodel import col

from factories import (
    add_member,
    grant_board,
    grant_project,
    make_board,
    make_org,
    make_project,
    make_team,
    make_user,
)
from kanban.core.errors import ForbiddenError, NotFoundError
from kanban.db import crud
from kanban.models.team_grants import BoardTeamGrant
from kanban.services.permission_resolver import (
    AccessLevel,
    AccessScope,
    best_grant,
    require_access,
    resolve_access,
)


@dataclass
class _Grant:
    team_id: object
    permission: str


def test_access_levels_are_totally_ordered() -> None:
    ordered = [AccessLevel.NONE, AccessLevel.VIEW, AccessLevel.EDIT, AccessLevel.ADMIN]
    assert [level.rank for level in ordered] == [0, 1, 2, 3]
    assert AccessLevel.ADMIN.allows(AccessLevel.EDIT)
    assert AccessLevel.EDIT.allows(AccessLevel.EDIT)
    assert not AccessLevel.VIEW.allows(AccessLevel.EDIT)
    assert AccessLevel.NONE.allows(AccessLevel.NONE)


def test_best_grant_takes_max_over_callers_teams() -> None:
    mine_a, mine_b, other = uuid4(), uuid4(), uuid4()
    grants = [
        _Grant(team_id=mine_a, permission="view"),
        _Grant(team_id=mine_b, permission="edit"),
        _Grant(team_id=other, permission="admin"),
    ]

    assert best_grant(grants, {mine_a, mine_b}) == AccessLevel.EDIT  # type: ignore[arg-type]
    assert best_grant(grants, set()) == AccessLevel.NONE  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_non_member_gets_none_and_admin_roles_override(session) -> None:
    owner = await make_user(session)
    admin = await make_user(session)
    outsider = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, admin, role="admin")
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)
    # Restrict the board to a team neither admin belongs to.
    team = await make_team(session, org, owner)
    await grant_board(session, board, team, "view")

    scope = AccessScope.board(board.id)
    assert await resolve_access(session, user_id=outsider.id, scope=scope) == AccessLevel.NONE
    assert await resolve_access(session, user_id=owner.id, scope=scope) == AccessLevel.ADMIN
    assert await resolve_access(session, user_id=admin.id, scope=scope) == AccessLevel.ADMIN


@pytest.mark.asyncio
async def test_plain_member_views_organization_and_edits_open_project(session) -> None:
    owner = await make_user(session)
    member = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, member)
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)

    org_level = await resolve_access(
        session,
        user_id=member.id,
        scope=AccessScope.organization(org.id),
    )
    project_level = await resolve_access(
        session,
        user_id=member.id,
        scope=AccessScope.project(project.id),
    )
    board_level = await resolve_access(
        session,
        user_id=member.id,
        scope=AccessScope.board(board.id),
    )

    assert org_level == AccessLevel.VIEW
    assert project_level == AccessLevel.EDIT
    assert board_level == AccessLevel.EDIT


@pytest.mark.asyncio
async def test_project_grants_restrict_members_outside_granted_teams(session) -> None:
    owner = await make_user(session)
    insider = await make_user(session)
    outsider = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, insider)
    await add_member(session, org, outsider)
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)
    team = await make_team(session, org, owner, insider)
    await grant_project(session, project, team, "view")

    board_scope = AccessScope.board(board.id)
    assert await resolve_access(session, user_id=insider.id, scope=board_scope) == AccessLevel.VIEW
    assert await resolve_access(session, user_id=outsider.id, scope=board_scope) == AccessLevel.NONE


@pytest.mark.asyncio
async def test_board_grants_are_terminal_and_override_project(session) -> None:
    owner = await make_user(session)
    user = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, user)
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)
    editors = await make_team(session, org, owner, user, name="Editors")
    others = await make_team(session, org, owner, name="Others")
    await grant_project(session, project, editors, "edit")
    await grant_board(session, board, others, "admin")

    # Board has grants, none for the user's teams: no fall-through to the project.
    level = await resolve_access(session, user_id=user.id, scope=AccessScope.board(board.id))
    assert level == AccessLevel.NONE

    await grant_board(session, board, editors, "view")
    level = await resolve_access(session, user_id=user.id, scope=AccessScope.board(board.id))
    assert level == AccessLevel.VIEW


@pytest.mark.asyncio
async def test_max_over_multiple_team_grants(session) -> None:
    owner = await make_user(session)
    user = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, user)
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)
    viewers = await make_team(session, org, owner, user, name="Viewers")
    editors = await make_team(session, org, owner, user, name="Editors")
    await grant_board(session, board, viewers, "view")
    await grant_board(session, board, editors, "edit")

    level = await resolve_access(session, user_id=user.id, scope=AccessScope.board(board.id))
    assert level == AccessLevel.EDIT


@pytest.mark.asyncio
async def test_removing_last_board_grant_falls_back_to_project(session) -> None:
    owner = await make_user(session)
    user = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, user)
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)
    team = await make_team(session, org, owner, user)
    await grant_project(session, project, team, "edit")
    await grant_board(session, board, team, "view")
    scope = AccessScope.board(board.id)
    assert await resolve_access(session, user_id=user.id, scope=scope) == AccessLevel.VIEW

    await crud.delete_where(session, BoardTeamGrant, col(BoardTeamGrant.board_id) == board.id)

    assert await resolve_access(session, user_id=user.id, scope=scope) == AccessLevel.EDIT


@pytest.mark.asyncio
async def test_teams_of_other_organizations_do_not_count(session) -> None:
    owner = await make_user(session)
    user = await make_user(session)
    org = await make_org(session, owner=owner, name="Acme")
    other_org = await make_org(session, owner=owner, name="Globex")
    await add_member(session, org, user)
    await add_member(session, other_org, user)
    project = await make_project(session, org, owner)
    board, _ = await make_board(session, project, owner)
    foreign_team = await make_team(session, other_org, owner, user)
    local_team = await make_team(session, org, owner)
    await grant_board(session, board, local_team, "view")
    # A stray grant to a team of another organization must be ignored.
    await grant_board(session, board, foreign_team, "admin")

    level = await resolve_access(session, user_id=user.id, scope=AccessScope.board(board.id))
    assert level == AccessLevel.NONE


@pytest.mark.asyncio
async def test_missing_resources_raise_not_found(session) -> None:
    user = await make_user(session)

    for scope in (
        AccessScope.organization(uuid4()),
        AccessScope.project(uuid4()),
        AccessScope.board(uuid4()),
    ):
        with pytest.raises(NotFoundError):
            await resolve_access(session, user_id=user.id, scope=scope)


@pytest.mark.asyncio
async def test_require_access_raises_forbidden_below_minimum(session) -> None:
    owner = await make_user(session)
    member = await make_user(session)
    org = await make_org(session, owner=owner)
    await add_member(session, org, member)

    with pytest.raises(ForbiddenError) as exc_info:
        await require_access(
            session,
            user_id=member.id,
            scope=AccessScope.organization(org.id),
            minimum=AccessLevel.ADMIN,
        )
    assert exc_info.value.status_code == 403

    level = await require_access(
        session,
        user_id=member.id,
        scope=AccessScope.organization(org.id),
        minimum=AccessLevel.VIEW,
    )
    assert level == AccessLevel.VIEW
