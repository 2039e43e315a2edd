"""Organization and membership service helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from kanban.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.models.organization_members import ORG_ROLES, OrganizationMember
from kanban.models.organizations import Organization
from kanban.models.projects import Project
from kanban.models.tasks import Task
from kanban.models.teams import Team, TeamMember
from kanban.models.users import User

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.schemas.organizations import OrganizationCreate, OrganizationUpdate

logger = get_logger(__name__)

ADMIN_ROLES = {"owner", "admin"}
ROLE_RANK = {"member": 0, "admin": 1, "owner": 2}


def is_org_admin(member: OrganizationMember) -> bool:
    """Return whether a member has admin-level organization privileges."""
    return member.role in ADMIN_ROLES


def normalize_role(role: str) -> str:
    """Validate and canonicalize an organization role name."""
    value = role.strip().lower()
    if value not in ORG_ROLES:
        raise ValidationError(f"Unknown organization role: {role}")
    return value


def _clean_name(name: str, *, label: str = "Name") -> str:
    value = name.strip()
    if not value:
        raise ValidationError(f"{label} must not be blank")
    return value


async def get_member(
    session: AsyncSession,
    *,
    user_id: UUID,
    organization_id: UUID,
) -> OrganizationMember | None:
    """Return the membership row linking `user_id` to `organization_id`, if any."""
    return await OrganizationMember.objects.filter_by(
        user_id=user_id,
        organization_id=organization_id,
    ).first(session)


async def create_organization(
    session: AsyncSession,
    *,
    owner: User,
    payload: OrganizationCreate,
) -> Organization:
    """Create an organization and enroll `owner` as its first owner member."""
    now = utcnow()
    organization = Organization(
        name=_clean_name(payload.name),
        description=payload.description,
        owner_id=owner.id,
        created_at=now,
        updated_at=now,
    )
    session.add(organization)
    await session.flush()
    session.add(
        OrganizationMember(
            organization_id=organization.id,
            user_id=owner.id,
            role="owner",
            created_at=now,
            updated_at=now,
        ),
    )
    await session.commit()
    await session.refresh(organization)
    logger.info(
        "org.created organization_id=%s owner_id=%s",
        organization.id,
        owner.id,
    )
    return organization


async def update_organization(
    session: AsyncSession,
    *,
    organization: Organization,
    payload: OrganizationUpdate,
) -> Organization:
    """Apply a partial update to an organization."""
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates:
        if updates["name"] is None:
            raise ValidationError("Name must not be blank")
        organization.name = _clean_name(updates["name"])
    if "description" in updates:
        organization.description = updates["description"]
    organization.updated_at = utcnow()
    return await crud.save(session, organization)


async def delete_organization(session: AsyncSession, *, organization: Organization) -> None:
    """Delete an organization and everything it contains."""
    project_ids = select(Project.id).where(col(Project.organization_id) == organization.id)
    # Tasks reference columns with RESTRICT, so they go before the cascade.
    await crud.delete_where(
        session,
        Task,
        col(Task.project_id).in_(project_ids),
        commit=False,
    )
    await crud.delete_where(
        session,
        Organization,
        col(Organization.id) == organization.id,
        commit=False,
    )
    await session.commit()
    logger.info("org.deleted organization_id=%s", organization.id)


async def list_user_organizations(
    session: AsyncSession,
    *,
    user_id: UUID,
) -> list[tuple[Organization, OrganizationMember]]:
    """Return the user's organizations paired with their membership."""
    statement = (
        select(Organization, OrganizationMember)
        .join(
            OrganizationMember,
            col(OrganizationMember.organization_id) == col(Organization.id),
        )
        .where(col(OrganizationMember.user_id) == user_id)
        .order_by(func.lower(col(Organization.name)).asc(), col(Organization.created_at).asc())
    )
    return [(org, member) for org, member in await session.exec(statement)]


async def list_members(
    session: AsyncSession,
    *,
    organization_id: UUID,
) -> list[tuple[OrganizationMember, User]]:
    """Return organization members with their user rows."""
    statement = (
        select(OrganizationMember, User)
        .join(User, col(User.id) == col(OrganizationMember.user_id))
        .where(col(OrganizationMember.organization_id) == organization_id)
        .order_by(col(OrganizationMember.created_at).asc())
    )
    return [(member, user) for member, user in await session.exec(statement)]


async def add_member(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
    role: str = "member",
) -> OrganizationMember:
    """Enroll an existing user in an organization."""
    normalized = normalize_role(role)
    if await User.objects.by_id(user_id).first(session) is None:
        raise NotFoundError("User not found")
    if await get_member(session, user_id=user_id, organization_id=organization_id) is not None:
        raise ConflictError("User is already a member of this organization")
    now = utcnow()
    member = OrganizationMember(
        organization_id=organization_id,
        user_id=user_id,
        role=normalized,
        created_at=now,
        updated_at=now,
    )
    session.add(member)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("User is already a member of this organization") from exc
    await session.refresh(member)
    logger.info(
        "org.member.added organization_id=%s user_id=%s role=%s",
        organization_id,
        user_id,
        normalized,
    )
    return member


async def count_owners(
    session: AsyncSession,
    *,
    organization_id: UUID,
    lock: bool = False,
) -> int:
    """Return how many owner memberships an organization has.

    With `lock`, the owner rows stay locked until the transaction ends, so two
    concurrent demotions cannot both see a second owner.
    """
    owners = OrganizationMember.objects.filter_by(
        organization_id=organization_id,
        role="owner",
    )
    if lock:
        owners = owners.for_update()
    return len(await owners.all(session))


async def _ensure_not_last_owner(session: AsyncSession, member: OrganizationMember) -> None:
    if member.role != "owner":
        return
    if await count_owners(session, organization_id=member.organization_id, lock=True) <= 1:
        raise ValidationError("Organization must keep at least one owner")


def _ensure_can_manage(actor: OrganizationMember, member: OrganizationMember, role: str) -> None:
    if not is_org_admin(actor):
        raise ForbiddenError("Organization admin access required")
    if "owner" in (member.role, role) and actor.role != "owner":
        raise ForbiddenError("Only owners can grant or revoke ownership")


async def update_member_role(
    session: AsyncSession,
    *,
    actor: OrganizationMember,
    member: OrganizationMember,
    role: str,
) -> OrganizationMember:
    """Change a member's role, keeping at least one owner."""
    normalized = normalize_role(role)
    _ensure_can_manage(actor, member, normalized)
    if normalized == member.role:
        return member
    if normalized != "owner":
        await _ensure_not_last_owner(session, member)
    previous = member.role
    member.role = normalized
    member.updated_at = utcnow()
    await crud.save(session, member)
    logger.info(
        "org.member.role_changed organization_id=%s user_id=%s from=%s to=%s",
        member.organization_id,
        member.user_id,
        previous,
        normalized,
    )
    return member


async def remove_member(
    session: AsyncSession,
    *,
    actor: OrganizationMember,
    member: OrganizationMember,
) -> None:
    """Remove a member and their team memberships in the organization.

    Members may always remove themselves; removing someone else needs admin
    rights, and removing an owner needs an owner.
    """
    if actor.id != member.id:
        _ensure_can_manage(actor, member, member.role)
    await _ensure_not_last_owner(session, member)
    org_team_ids = select(Team.id).where(col(Team.organization_id) == member.organization_id)
    await crud.delete_where(
        session,
        TeamMember,
        col(TeamMember.user_id) == member.user_id,
        col(TeamMember.team_id).in_(org_team_ids),
        commit=False,
    )
    await crud.delete_where(
        session,
        OrganizationMember,
        col(OrganizationMember.id) == member.id,
        commit=False,
    )
    await session.commit()
    logger.info(
        "org.member.removed organization_id=%s user_id=%s",
        member.organization_id,
        member.user_id,
    )
