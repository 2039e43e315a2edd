"""Organization invitation model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from kanban.core.time import utcnow
from kanban.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

INVITATION_STATUSES = ("pending", "accepted", "expired")


class Invitation(QueryModel, table=True):
    """Pending offer of organization membership to an email address."""

    __tablename__ = "invitations"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(
        foreign_key="organizations.id",
        index=True,
        ondelete="CASCADE",
    )
    email: str = Field(index=True)
    role: str = Field(default="member")
    invited_by_id: UUID = Field(foreign_key="users.id", index=True)
    status: str = Field(default="pending", index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
