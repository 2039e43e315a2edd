"""Invitation endpoints for the invited user."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter

from kanban.api.deps import AUTH_DEP, SESSION_DEP
from kanban.models.users import User
from kanban.schemas.organizations import InvitationRead, OrganizationMemberRead
from kanban.schemas.users import UserRead
from kanban.services import invitations as invitation_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get("/me", response_model=list[InvitationRead])
async def list_my_invitations(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[InvitationRead]:
    """List pending invitations addressed to the caller's email."""
    invitations = await invitation_service.list_pending_for_user(session, user=auth.user)
    return [InvitationRead.model_validate(item, from_attributes=True) for item in invitations]


@router.post("/{invitation_id}/accept", response_model=OrganizationMemberRead)
async def accept_invitation(
    invitation_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OrganizationMemberRead:
    member = await invitation_service.accept_invitation(
        session,
        invitation_id=invitation_id,
        user=auth.user,
    )
    model = OrganizationMemberRead.model_validate(member, from_attributes=True)
    user = await User.objects.by_id(member.user_id).first(session)
    if user is not None:
        model.user = UserRead.model_validate(user, from_attributes=True)
    return model
