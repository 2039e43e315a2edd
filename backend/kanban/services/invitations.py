"""Organization invitations by email address."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from sqlmodel import col

from kanban.core.config import settings
from kanban.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.invitations import Invitation
from kanban.models.organization_members import OrganizationMember
from kanban.services.organizations import get_member, normalize_role

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.models.users import User

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    value = email.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValidationError("A valid email address is required")
    return value


async def create_invitation(
    session: AsyncSession,
    *,
    organization_id: UUID,
    invited_by: OrganizationMember,
    email: str,
    role: str = "member",
) -> Invitation:
    """Invite an email address; only owners may invite further owners."""
    normalized_email = normalize_email(email)
    normalized_role = normalize_role(role)
    if normalized_role == "owner" and invited_by.role != "owner":
        raise ForbiddenError("Only owners can invite owners")
    pending = await Invitation.objects.filter_by(
        organization_id=organization_id,
        email=normalized_email,
        status="pending",
    ).first(session)
    if pending is not None and pending.expires_at > utcnow():
        raise ConflictError("A pending invitation already exists for this email")
    now = utcnow()
    invitation = Invitation(
        organization_id=organization_id,
        email=normalized_email,
        role=normalized_role,
        invited_by_id=invited_by.user_id,
        status="pending",
        expires_at=now + timedelta(days=settings.invitation_ttl_days),
        created_at=now,
    )
    await crud.save(session, invitation)
    logger.info(
        "org.invitation.created organization_id=%s invitation_id=%s role=%s",
        organization_id,
        invitation.id,
        normalized_role,
    )
    return invitation


async def list_invitations(session: AsyncSession, *, organization_id: UUID) -> list[Invitation]:
    return (
        await Invitation.objects.filter_by(organization_id=organization_id)
        .order_by(col(Invitation.created_at).desc())
        .all(session)
    )


async def revoke_invitation(
    session: AsyncSession,
    *,
    organization_id: UUID,
    invitation_id: UUID,
) -> None:
    deleted = await crud.delete_where(
        session,
        Invitation,
        col(Invitation.id) == invitation_id,
        col(Invitation.organization_id) == organization_id,
    )
    if not deleted:
        raise NotFoundError("Invitation not found")
    logger.info("org.invitation.revoked invitation_id=%s", invitation_id)


async def accept_invitation(
    session: AsyncSession,
    *,
    invitation_id: UUID,
    user: User,
) -> OrganizationMember:
    """Turn a pending invitation addressed to `user` into a membership."""
    invitation = await Invitation.objects.by_id(invitation_id).first(session)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if (user.email or "").strip().lower() != invitation.email:
        raise ForbiddenError("Invitation was sent to a different email address")
    if invitation.status != "pending":
        raise ValidationError("Invitation is no longer pending")
    now = utcnow()
    if invitation.expires_at <= now:
        invitation.status = "expired"
        await crud.save(session, invitation)
        raise ValidationError("Invitation has expired")

    member = await get_member(
        session,
        user_id=user.id,
        organization_id=invitation.organization_id,
    )
    if member is None:
        member = OrganizationMember(
            organization_id=invitation.organization_id,
            user_id=user.id,
            role=invitation.role,
            created_at=now,
            updated_at=now,
        )
        session.add(member)
    invitation.status = "accepted"
    session.add(invitation)
    await session.commit()
    await session.refresh(member)
    logger.info(
        "org.invitation.accepted organization_id=%s user_id=%s",
        invitation.organization_id,
        user.id,
    )
    return member


async def list_pending_for_user(session: AsyncSession, *, user: User) -> list[Invitation]:
    """Return unexpired pending invitations addressed to the user's email."""
    email = (user.email or "").strip().lower()
    if not email:
        return []
    return (
        await Invitation.objects.filter_by(email=email, status="pending")
        .filter(col(Invitation.expires_at) > utcnow())
        .order_by(col(Invitation.created_at).desc())
        .all(session)
    )
