# ruff: noqa: INP001
"""End-to-end API flow in local auth mode against an in-memory database."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI
from fastapi_pagination import add_pagination
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from factories import make_board, make_org, make_project, make_user
from kanban.api.analytics import router as analytics_router
from kanban.api.boards import router as boards_router
from kanban.api.organizations import router as organizations_router
from kanban.api.projects import router as projects_router
from kanban.api.tasks import router as tasks_router
from kanban.api.users import router as users_router
from kanban.core.config import settings
from kanban.core.error_handling import install_error_handling
from kanban.db.session import get_session


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    for router in (
        users_router,
        organizations_router,
        projects_router,
        boards_router,
        tasks_router,
        analytics_router,
    ):
        api_v1.include_router(router)
    app.include_router(api_v1)
    add_pagination(app)

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {settings.local_auth_token}"}


@pytest_asyncio.fixture
async def client(engine: AsyncEngine) -> AsyncIterator[AsyncClient]:
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest.mark.asyncio
async def test_requests_without_valid_token_are_rejected(client: AsyncClient) -> None:
    missing = await client.get("/api/v1/users/me")
    wrong = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_board_workflow_over_http(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    me = await client.get("/api/v1/users/me", headers=auth_headers)
    assert me.status_code == 200
    assert me.json()["email"] == settings.local_auth_email

    org = await client.post("/api/v1/organizations", json={"name": "Acme"}, headers=auth_headers)
    assert org.status_code == 200
    org_id = org.json()["id"]

    project = await client.post(
        f"/api/v1/organizations/{org_id}/projects",
        json={"name": "P1"},
        headers=auth_headers,
    )
    assert project.status_code == 200
    board = await client.post(
        f"/api/v1/projects/{project.json()['id']}/boards",
        json={"name": "B1"},
        headers=auth_headers,
    )
    assert board.status_code == 200
    board_id = board.json()["id"]

    columns = await client.get(f"/api/v1/boards/{board_id}/columns", headers=auth_headers)
    assert [c["name"] for c in columns.json()] == ["Pendiente", "En Progreso", "Completada"]
    pendiente, en_progreso, completada = (c["id"] for c in columns.json())

    access = await client.get(f"/api/v1/boards/{board_id}/access", headers=auth_headers)
    assert access.json()["access"] == "admin"

    created = await client.post(
        "/api/v1/tasks",
        json={"board_id": board_id, "column_id": pendiente, "title": "T1"},
        headers=auth_headers,
    )
    assert created.status_code == 200
    task_id = created.json()["id"]

    moved = await client.post(
        f"/api/v1/tasks/{task_id}/move",
        json={"column_id": en_progreso},
        headers=auth_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["column_id"] == en_progreso

    blocked = await client.delete(f"/api/v1/columns/{en_progreso}", headers=auth_headers)
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "conflict"
    removed = await client.delete(f"/api/v1/columns/{completada}", headers=auth_headers)
    assert removed.status_code == 200

    reordered = await client.put(
        f"/api/v1/boards/{board_id}/columns/order",
        json={"column_ids": [en_progreso, pendiente]},
        headers=auth_headers,
    )
    assert reordered.status_code == 200
    assert [(c["id"], c["order"]) for c in reordered.json()] == [(en_progreso, 0), (pendiente, 1)]

    page = await client.get(f"/api/v1/boards/{board_id}/tasks?limit=10", headers=auth_headers)
    assert page.status_code == 200
    body = page.json()
    assert body["total"] == 1
    assert body["limit"] == 10
    assert [t["id"] for t in body["items"]] == [task_id]

    activity = await client.get(f"/api/v1/tasks/{task_id}/activity", headers=auth_headers)
    assert [a["action_type"] for a in activity.json()["items"]] == ["column_change", "created"]

    first_page = await client.get(
        f"/api/v1/tasks/{task_id}/activity?limit=1&offset=0",
        headers=auth_headers,
    )
    assert first_page.status_code == 200
    assert first_page.json()["total"] == 2
    assert [a["field_name"] for a in first_page.json()["items"]] == ["column"]

    mine = await client.get("/api/v1/tasks?created_by_me=true", headers=auth_headers)
    assert mine.status_code == 200
    assert [t["id"] for t in mine.json()["items"]] == [task_id]
    assigned = await client.get("/api/v1/tasks?assigned_to_me=true", headers=auth_headers)
    assert assigned.json()["total"] == 0

    board_users = await client.get(f"/api/v1/boards/{board_id}/users", headers=auth_headers)
    assert board_users.status_code == 200
    assert [u["email"] for u in board_users.json()] == [settings.local_auth_email]

    overview = await client.get("/api/v1/analytics/overview", headers=auth_headers)
    assert overview.status_code == 200
    stats = overview.json()
    assert stats["total_tasks"] == 1
    assert stats["completed_last_7_days"] == 0
    assert stats["tasks_by_column"] == [{"label": "En Progreso", "count": 1}]
    assert stats["tasks_by_priority"] == [{"label": "medium", "count": 1}]
    assert len(stats["recent_activity"]) == 2


@pytest.mark.asyncio
async def test_profile_update_over_http(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    updated = await client.patch(
        "/api/v1/users/me",
        json={"first_name": " Ada ", "last_name": "Lovelace"},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert (updated.json()["first_name"], updated.json()["last_name"]) == ("Ada", "Lovelace")

    me = await client.get("/api/v1/users/me", headers=auth_headers)
    assert me.json()["first_name"] == "Ada"

    blank = await client.patch("/api/v1/users/me", json={"first_name": "  "}, headers=auth_headers)
    assert blank.status_code == 400


@pytest.mark.asyncio
async def test_non_member_is_forbidden(
    client: AsyncClient,
    session: AsyncSession,
    auth_headers: dict[str, str],
) -> None:
    stranger = await make_user(session)
    org = await make_org(session, owner=stranger, name="Globex")
    project = await make_project(session, org, stranger)
    board, columns = await make_board(session, project, stranger)

    listing = await client.get(f"/api/v1/organizations/{org.id}/projects", headers=auth_headers)
    board_read = await client.get(f"/api/v1/boards/{board.id}", headers=auth_headers)
    create = await client.post(
        "/api/v1/tasks",
        json={"board_id": str(board.id), "column_id": str(columns[0].id), "title": "Sneaky"},
        headers=auth_headers,
    )

    assert listing.status_code == 403
    assert board_read.status_code == 403
    assert board_read.json()["code"] == "forbidden"
    assert create.status_code == 403

    board_users = await client.get(f"/api/v1/boards/{board.id}/users", headers=auth_headers)
    assert board_users.status_code == 403
    visible = await client.get("/api/v1/tasks", headers=auth_headers)
    assert visible.json()["total"] == 0


@pytest.mark.asyncio
async def test_unknown_board_is_not_found(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    resp = await client.get(
        "/api/v1/boards/00000000-0000-0000-0000-000000000000",
        headers=auth_headers,
    )

    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"
