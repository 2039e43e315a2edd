"""Board column model; column order is unique per board."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class BoardColumn(QueryModel, table=True):
    """Ordered workflow column belonging to exactly one board."""

    __tablename__ = "board_columns"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("board_id", "order", name="uq_board_columns_board_order"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True, ondelete="CASCADE")
    name: str
    order: int
    color: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
