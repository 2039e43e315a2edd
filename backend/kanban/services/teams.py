"""Team store: organization-scoped teams and their members."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from kanban.core.errors import ConflictError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.teams import Team, TeamMember
from kanban.services.organizations import get_member

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.schemas.teams import TeamCreate, TeamUpdate

logger = get_logger(__name__)


def _clean_team_name(name: str | None) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Team name must not be blank")
    return value


async def create_team(
    session: AsyncSession,
    *,
    organization_id: UUID,
    actor_id: UUID,
    payload: TeamCreate,
) -> Team:
    """Create a team inside an organization."""
    now = utcnow()
    team = Team(
        organization_id=organization_id,
        name=_clean_team_name(payload.name),
        description=payload.description,
        color=payload.color,
        created_by_id=actor_id,
        created_at=now,
        updated_at=now,
    )
    await crud.save(session, team)
    logger.info("team.created team_id=%s organization_id=%s", team.id, organization_id)
    return team


async def update_team(session: AsyncSession, *, team: Team, payload: TeamUpdate) -> Team:
    """Apply a partial update to a team."""
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates:
        team.name = _clean_team_name(updates["name"])
    if "description" in updates:
        team.description = updates["description"]
    if "color" in updates:
        team.color = updates["color"]
    team.updated_at = utcnow()
    return await crud.save(session, team)


async def delete_team(session: AsyncSession, *, team: Team) -> None:
    """Delete a team; its memberships and grants cascade."""
    await crud.delete_where(session, Team, col(Team.id) == team.id)
    logger.info("team.deleted team_id=%s organization_id=%s", team.id, team.organization_id)


async def list_teams(session: AsyncSession, *, organization_id: UUID) -> list[Team]:
    """List an organization's teams by name."""
    return (
        await Team.objects.filter_by(organization_id=organization_id)
        .order_by(func.lower(col(Team.name)).asc())
        .all(session)
    )


async def list_team_members(session: AsyncSession, *, team: Team) -> list[TeamMember]:
    return (
        await TeamMember.objects.filter_by(team_id=team.id)
        .order_by(col(TeamMember.created_at).asc())
        .all(session)
    )


async def add_team_member(session: AsyncSession, *, team: Team, user_id: UUID) -> TeamMember:
    """Add an organization member to a team."""
    member = await get_member(session, user_id=user_id, organization_id=team.organization_id)
    if member is None:
        raise ValidationError("User is not a member of the team's organization")
    existing = await TeamMember.objects.filter_by(team_id=team.id, user_id=user_id).first(session)
    if existing is not None:
        raise ConflictError("User is already a member of this team")
    link = TeamMember(team_id=team.id, user_id=user_id, created_at=utcnow())
    session.add(link)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("User is already a member of this team") from exc
    await session.refresh(link)
    logger.info("team.member.added team_id=%s user_id=%s", team.id, user_id)
    return link


async def remove_team_member(session: AsyncSession, *, team: Team, user_id: UUID) -> None:
    """Remove a user from a team."""
    deleted = await crud.delete_where(
        session,
        TeamMember,
        col(TeamMember.team_id) == team.id,
        col(TeamMember.user_id) == user_id,
    )
    if not deleted:
        raise NotFoundError("Team member not found")
    logger.info("team.member.removed team_id=%s user_id=%s", team.id, user_id)


async def list_user_teams(
    session: AsyncSession,
    *,
    user_id: UUID,
    organization_id: UUID | None = None,
) -> list[Team]:
    """Return teams the user belongs to, optionally within one organization."""
    statement = (
        select(Team)
        .join(TeamMember, col(TeamMember.team_id) == col(Team.id))
        .where(col(TeamMember.user_id) == user_id)
    )
    if organization_id is not None:
        statement = statement.where(col(Team.organization_id) == organization_id)
    statement = statement.order_by(func.lower(col(Team.name)).asc())
    return list(await session.exec(statement))
