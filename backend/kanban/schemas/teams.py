"""Schemas for teams, team membership, and team grants."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

GrantPermission = Literal["view", "edit", "admin"]


class TeamCreate(SQLModel):
    """Payload for creating a team."""

    name: str
    description: str | None = None
    color: str | None = None


class TeamUpdate(SQLModel):
    """Partial team update."""

    name: str | None = None
    description: str | None = None
    color: str | None = None


class TeamRead(SQLModel):
    """Team payload."""

    id: UUID
    organization_id: UUID
    name: str
    description: str | None = None
    color: str | None = None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class TeamMemberCreate(SQLModel):
    """Add a user to a team."""

    user_id: UUID


class TeamMemberRead(SQLModel):
    """Team membership payload."""

    id: UUID
    team_id: UUID
    user_id: UUID
    created_at: datetime


class TeamGrantCreate(SQLModel):
    """Grant a team access to a project or board."""

    team_id: UUID
    permission: GrantPermission = "view"


class TeamGrantUpdate(SQLModel):
    """Change the permission of an existing grant."""

    permission: GrantPermission


class ProjectTeamGrantRead(SQLModel):
    """Project grant payload."""

    id: UUID
    project_id: UUID
    team_id: UUID
    permission: str
    created_at: datetime
    updated_at: datetime


class BoardTeamGrantRead(SQLModel):
    """Board grant payload."""

    id: UUID
    board_id: UUID
    team_id: UUID
    permission: str
    created_at: datetime
    updated_at: datetime
