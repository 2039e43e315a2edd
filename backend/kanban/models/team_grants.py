"""Team permission grants on projects and boards."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

GRANT_PERMISSIONS = ("view", "edit", "admin")


class ProjectTeamGrant(QueryModel, table=True):
    """Restricts a project to the listed teams once any grant exists."""

    __tablename__ = "project_team_grants"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("project_id", "team_id", name="uq_project_team_grants_project_team"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True, ondelete="CASCADE")
    team_id: UUID = Field(foreign_key="teams.id", index=True, ondelete="CASCADE")
    permission: str = Field(default="view")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BoardTeamGrant(QueryModel, table=True):
    """Board-level override of project grants; an allow-list once present."""

    __tablename__ = "board_team_grants"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint("board_id", "team_id", name="uq_board_team_grants_board_team"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True, ondelete="CASCADE")
    team_id: UUID = Field(foreign_key="teams.id", index=True, ondelete="CASCADE")
    permission: str = Field(default="view")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
