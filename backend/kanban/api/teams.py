"""Team and team-membership endpoints, scoped to an organization."""

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
    get_team_for_admin,
)
from kanban.schemas.common import OkResponse
from kanban.schemas.teams import (
    TeamCreate,
    TeamMemberCreate,
    TeamMemberRead,
    TeamRead,
    TeamUpdate,
)
from kanban.services import teams as team_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext
    from kanban.models.teams import Team

router = APIRouter(prefix="/organizations/{organization_id}/teams", tags=["teams"])
TEAM_ADMIN_DEP = Depends(get_team_for_admin)


@router.get("", response_model=list[TeamRead])
async def list_teams(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> list[TeamRead]:
    teams = await team_service.list_teams(session, organization_id=ctx.organization.id)
    return [TeamRead.model_validate(team, from_attributes=True) for team in teams]


@router.get("/mine", response_model=list[TeamRead])
async def list_my_teams(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> list[TeamRead]:
    """List the caller's teams in this organization."""
    teams = await team_service.list_user_teams(
        session,
        user_id=auth.user.id,
        organization_id=ctx.organization.id,
    )
    return [TeamRead.model_validate(team, from_attributes=True) for team in teams]


@router.post("", response_model=TeamRead)
async def create_team(
    payload: TeamCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> TeamRead:
    team = await team_service.create_team(
        session,
        organization_id=ctx.organization.id,
        actor_id=ctx.member.user_id,
        payload=payload,
    )
    return TeamRead.model_validate(team, from_attributes=True)


@router.patch("/{team_id}", response_model=TeamRead)
async def update_team(
    payload: TeamUpdate,
    session: AsyncSession = SESSION_DEP,
    team: Team = TEAM_ADMIN_DEP,
) -> TeamRead:
    updated = await team_service.update_team(session, team=team, payload=payload)
    return TeamRead.model_validate(updated, from_attributes=True)


@router.delete("/{team_id}", response_model=OkResponse)
async def delete_team(
    session: AsyncSession = SESSION_DEP,
    team: Team = TEAM_ADMIN_DEP,
) -> OkResponse:
    """Delete a team; its grants disappear with it."""
    await team_service.delete_team(session, team=team)
    return OkResponse()


@router.get("/{team_id}/members", response_model=list[TeamMemberRead])
async def list_team_members(
    session: AsyncSession = SESSION_DEP,
    team: Team = TEAM_ADMIN_DEP,
) -> list[TeamMemberRead]:
    members = await team_service.list_team_members(session, team=team)
    return [TeamMemberRead.model_validate(member, from_attributes=True) for member in members]


@router.post("/{team_id}/members", response_model=TeamMemberRead)
async def add_team_member(
    payload: TeamMemberCreate,
    session: AsyncSession = SESSION_DEP,
    team: Team = TEAM_ADMIN_DEP,
) -> TeamMemberRead:
    link = await team_service.add_team_member(session, team=team, user_id=payload.user_id)
    return TeamMemberRead.model_validate(link, from_attributes=True)


@router.delete("/{team_id}/members/{user_id}", response_model=OkResponse)
async def remove_team_member(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
    team: Team = TEAM_ADMIN_DEP,
) -> OkResponse:
    await team_service.remove_team_member(session, team=team, user_id=user_id)
    return OkResponse()
