"""Schemas for organization, membership, and invitation payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import SQLModel

from kanban.schemas.users import UserRead

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

OrgRole = Literal["owner", "admin", "member"]


class OrganizationRead(SQLModel):
    """Organization payload returned by read endpoints."""

    id: UUID
    name: str
    description: str | None = None
    owner_id: UUID
    created_at: datetime
    updated_at: datetime


class OrganizationCreate(SQLModel):
    """Payload for creating a new organization."""

    name: str
    description: str | None = None


class OrganizationUpdate(SQLModel):
    """Partial organization update."""

    name: str | None = None
    description: str | None = None


class OrganizationListItem(SQLModel):
    """Organization row with the caller's role."""

    id: UUID
    name: str
    description: str | None = None
    role: str


class OrganizationMemberRead(SQLModel):
    """Organization member with embedded user fields."""

    id: UUID
    organization_id: UUID
    user_id: UUID
    role: str
    created_at: datetime
    updated_at: datetime
    user: UserRead | None = None


class OrganizationMemberCreate(SQLModel):
    """Add an existing user to an organization."""

    user_id: UUID
    role: OrgRole = "member"


class OrganizationMemberUpdate(SQLModel):
    """Change a member's role."""

    role: OrgRole


class InvitationCreate(SQLModel):
    """Invite an email address into an organization."""

    email: str
    role: OrgRole = "member"


class InvitationRead(SQLModel):
    """Invitation payload."""

    id: UUID
    organization_id: UUID
    email: str
    role: str
    invited_by_id: UUID
    status: str
    expires_at: datetime
    created_at: datetime
