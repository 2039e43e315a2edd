"""Organization, membership, and invitation management endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends

from kanban.api.deps import (
    AUTH_DEP,
    ORG_ADMIN_DEP,
    ORG_MEMBER_DEP,
    SESSION_DEP,
    OrganizationContext,
    require_org_owner,
)
from kanban.core.errors import ForbiddenError, NotFoundError
from kanban.models.organization_members import OrganizationMember
from kanban.models.users import User
from kanban.schemas.common import OkResponse
from kanban.schemas.organizations import (
    InvitationCreate,
    InvitationRead,
    OrganizationCreate,
    OrganizationListItem,
    OrganizationMemberCreate,
    OrganizationMemberRead,
    OrganizationMemberUpdate,
    OrganizationRead,
    OrganizationUpdate,
)
from kanban.schemas.users import UserRead
from kanban.services import invitations as invitation_service
from kanban.services import organizations as org_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext

router = APIRouter(prefix="/organizations", tags=["organizations"])
ORG_OWNER_DEP = Depends(require_org_owner)


def _member_to_read(member: OrganizationMember, user: User | None) -> OrganizationMemberRead:
    model = OrganizationMemberRead.model_validate(member, from_attributes=True)
    if user is not None:
        model.user = UserRead.model_validate(user, from_attributes=True)
    return model


async def _require_member_row(
    session: AsyncSession,
    *,
    organization_id: UUID,
    member_id: UUID,
) -> OrganizationMember:
    member = await OrganizationMember.objects.by_id(member_id).first(session)
    if member is None or member.organization_id != organization_id:
        raise NotFoundError("Member not found")
    return member


@router.post("", response_model=OrganizationRead)
async def create_organization(
    payload: OrganizationCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OrganizationRead:
    """Create an organization and make the caller its owner."""
    organization = await org_service.create_organization(session, owner=auth.user, payload=payload)
    return OrganizationRead.model_validate(organization, from_attributes=True)


@router.get("", response_model=list[OrganizationListItem])
async def list_my_organizations(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[OrganizationListItem]:
    """List organizations where the caller is a member."""
    rows = await org_service.list_user_organizations(session, user_id=auth.user.id)
    return [
        OrganizationListItem(
            id=org.id,
            name=org.name,
            description=org.description,
            role=member.role,
        )
        for org, member in rows
    ]


@router.get("/{organization_id}", response_model=OrganizationRead)
async def get_organization(ctx: OrganizationContext = ORG_MEMBER_DEP) -> OrganizationRead:
    return OrganizationRead.model_validate(ctx.organization, from_attributes=True)


@router.patch("/{organization_id}", response_model=OrganizationRead)
async def update_organization(
    payload: OrganizationUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OrganizationRead:
    organization = await org_service.update_organization(
        session,
        organization=ctx.organization,
        payload=payload,
    )
    return OrganizationRead.model_validate(organization, from_attributes=True)


@router.delete("/{organization_id}", response_model=OkResponse)
async def delete_organization(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_OWNER_DEP,
) -> OkResponse:
    """Delete the organization and everything it contains (owners only)."""
    await org_service.delete_organization(session, organization=ctx.organization)
    return OkResponse()


@router.get("/{organization_id}/members", response_model=list[OrganizationMemberRead])
async def list_members(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> list[OrganizationMemberRead]:
    rows = await org_service.list_members(session, organization_id=ctx.organization.id)
    return [_member_to_read(member, user) for member, user in rows]


@router.post("/{organization_id}/members", response_model=OrganizationMemberRead)
async def add_member(
    payload: OrganizationMemberCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OrganizationMemberRead:
    """Add an existing user to the organization."""
    if payload.role == "owner" and ctx.member.role != "owner":
        raise ForbiddenError("Only owners can grant or revoke ownership")
    member = await org_service.add_member(
        session,
        organization_id=ctx.organization.id,
        user_id=payload.user_id,
        role=payload.role,
    )
    user = await User.objects.by_id(member.user_id).first(session)
    return _member_to_read(member, user)


@router.patch("/{organization_id}/members/{member_id}", response_model=OrganizationMemberRead)
async def update_member(
    member_id: UUID,
    payload: OrganizationMemberUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OrganizationMemberRead:
    """Change a member's role; the last owner cannot be demoted."""
    member = await _require_member_row(
        session,
        organization_id=ctx.organization.id,
        member_id=member_id,
    )
    updated = await org_service.update_member_role(
        session,
        actor=ctx.member,
        member=member,
        role=payload.role,
    )
    user = await User.objects.by_id(updated.user_id).first(session)
    return _member_to_read(updated, user)


@router.delete("/{organization_id}/members/{member_id}", response_model=OkResponse)
async def remove_member(
    member_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> OkResponse:
    """Remove a member, or leave the organization when removing oneself."""
    member = await _require_member_row(
        session,
        organization_id=ctx.organization.id,
        member_id=member_id,
    )
    await org_service.remove_member(session, actor=ctx.member, member=member)
    return OkResponse()


@router.get("/{organization_id}/invitations", response_model=list[InvitationRead])
async def list_invitations(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> list[InvitationRead]:
    invitations = await invitation_service.list_invitations(
        session,
        organization_id=ctx.organization.id,
    )
    return [InvitationRead.model_validate(item, from_attributes=True) for item in invitations]


@router.post("/{organization_id}/invitations", response_model=InvitationRead)
async def create_invitation(
    payload: InvitationCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> InvitationRead:
    """Invite an email address to join with the given role."""
    invitation = await invitation_service.create_invitation(
        session,
        organization_id=ctx.organization.id,
        invited_by=ctx.member,
        email=payload.email,
        role=payload.role,
    )
    return InvitationRead.model_validate(invitation, from_attributes=True)


@router.delete("/{organization_id}/invitations/{invitation_id}", response_model=OkResponse)
async def revoke_invitation(
    invitation_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OkResponse:
    await invitation_service.revoke_invitation(
        session,
        organization_id=ctx.organization.id,
        invitation_id=invitation_id,
    )
    return OkResponse()
