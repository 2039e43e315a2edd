"""Analytics endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from kanban.api.deps import AUTH_DEP, SESSION_DEP
from kanban.schemas.analytics import AnalyticsOverviewRead, CountByLabel
from kanban.schemas.tasks import ActivityRead
from kanban.services.analytics import analytics_overview

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/overview", response_model=AnalyticsOverviewRead)
async def get_overview(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> AnalyticsOverviewRead:
    """Summarize tasks across every board the caller can view."""
    overview = await analytics_overview(session, user_id=auth.user.id)
    return AnalyticsOverviewRead(
        total_tasks=overview.total_tasks,
        overdue_tasks=overview.overdue_tasks,
        upcoming_due_tasks=overview.upcoming_due_tasks,
        completed_last_7_days=overview.completed_last_7_days,
        tasks_by_column=[
            CountByLabel(label=name, count=count) for name, count in overview.tasks_by_column
        ],
        tasks_by_priority=[
            CountByLabel(label=priority, count=count)
            for priority, count in overview.tasks_by_priority
        ],
        recent_activity=[
            ActivityRead.model_validate(entry, from_attributes=True)
            for entry in overview.recent_activity
        ],
    )
