"""Analytics overview payloads."""

from __future__ import annotations

from sqlmodel import SQLModel

from kanban.schemas.tasks import ActivityRead


class CountByLabel(SQLModel):
    """Task count for one column name or priority."""

    label: str
    count: int


class AnalyticsOverviewRead(SQLModel):
    """Workload summary over the tasks the caller can view."""

    total_tasks: int
    overdue_tasks: int
    upcoming_due_tasks: int
    completed_last_7_days: int
    tasks_by_column: list[CountByLabel]
    tasks_by_priority: list[CountByLabel]
    recent_activity: list[ActivityRead]
