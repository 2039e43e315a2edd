"""FastAPI application entrypoint and router wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi_pagination import add_pagination

from kanban.api.analytics import router as analytics_router
from kanban.api.boards import router as boards_router
from kanban.api.invitations import router as invitations_router
from kanban.api.organizations import router as organizations_router
from kanban.api.projects import router as projects_router
from kanban.api.tasks import router as tasks_router
from kanban.api.teams import router as teams_router
from kanban.api.users import router as users_router
from kanban.core.config import settings
from kanban.core.error_handling import install_error_handling
from kanban.core.logging import configure_logging, get_logger
from kanban.db.session import init_db
from kanban.schemas.health import HealthStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {"name": "health", "description": "Liveness and readiness probes."},
    {"name": "users", "description": "The authenticated caller's profile."},
    {
        "name": "organizations",
        "description": "Organizations, membership roles, and invitations.",
    },
    {"name": "invitations", "description": "Invitations addressed to the caller."},
    {"name": "teams", "description": "Organization teams and team membership."},
    {"name": "projects", "description": "Projects and project team grants."},
    {"name": "boards", "description": "Boards, board team grants, and ordered columns."},
    {
        "name": "tasks",
        "description": "Task lifecycle plus activity, comments, attachments, and links.",
    },
]
HEALTH_RESPONSES = {
    status.HTTP_200_OK: {
        "description": "API process is up.",
        "content": {"application/json": {"example": {"ok": True}}},
    },
}


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Bring the schema up to date before the app starts serving."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_migrate=%s",
        settings.environment,
        settings.db_auto_migrate,
    )
    await init_db()
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="Kanban API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get("/health", tags=["health"], response_model=HealthStatusResponse, responses=HEALTH_RESPONSES)
def health() -> HealthStatusResponse:
    """Process liveness."""
    return HealthStatusResponse(ok=True)


@app.get("/healthz", tags=["health"], response_model=HealthStatusResponse, responses=HEALTH_RESPONSES)
def healthz() -> HealthStatusResponse:
    """Kubernetes-style liveness alias."""
    return HealthStatusResponse(ok=True)


@app.get("/readyz", tags=["health"], response_model=HealthStatusResponse, responses=HEALTH_RESPONSES)
def readyz() -> HealthStatusResponse:
    """Readiness for load balancers; no dependency checks."""
    return HealthStatusResponse(ok=True)


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(users_router)
api_v1.include_router(organizations_router)
api_v1.include_router(invitations_router)
api_v1.include_router(teams_router)
api_v1.include_router(projects_router)
api_v1.include_router(boards_router)
api_v1.include_router(tasks_router)
api_v1.include_router(analytics_router)
app.include_router(api_v1)

add_pagination(app)
logger.debug("app.routes.registered count=%s", len(app.routes))
