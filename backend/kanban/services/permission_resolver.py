"""Access-level resolution for organization, project, and board scopes.

The ladder:

1. Walk the containment chain to the owning organization.
2. Non-members get ``none``; owners and admins get ``admin``.
3. Plain members get ``view`` at organization scope.
4. At board scope, any board grant turns the board into an allow-list: the
   result is the best grant among the caller's teams, or ``none``.
5. Boards without grants, and project scope, apply the same rule to project
   grants. A project without grants is open to every member at ``edit``.

Ownership of individual records is not part of this ladder.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Literal

from sqlmodel import col, select

from kanban.core.errors import ForbiddenError, NotFoundError
from kanban.core.logging import get_logger
from kanban.models.boards import Board
from kanban.models.organizations import Organization
from kanban.models.projects import Project
from kanban.models.team_grants import BoardTeamGrant, ProjectTeamGrant
from kanban.models.teams import Team, TeamMember
from kanban.services.organizations import get_member, is_org_admin

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

ScopeKind = Literal["organization", "project", "board"]


class AccessLevel(str, Enum):
    """Totally ordered access level: none < view < edit < admin."""

    NONE = "none"
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return ACCESS_RANK[self]

    def allows(self, minimum: AccessLevel) -> bool:
        """Return whether this level satisfies `minimum`."""
        return self.rank >= minimum.rank


ACCESS_RANK: dict[AccessLevel, int] = {
    AccessLevel.NONE: 0,
    AccessLevel.VIEW: 1,
    AccessLevel.EDIT: 2,
    AccessLevel.ADMIN: 3,
}

# Members of a project that has no team grants.
IMPLICIT_MEMBER_ACCESS = AccessLevel.EDIT


@dataclass(frozen=True)
class AccessScope:
    """Resource whose access level is being resolved."""

    kind: ScopeKind
    id: UUID

    @classmethod
    def organization(cls, organization_id: UUID) -> AccessScope:
        return cls(kind="organization", id=organization_id)

    @classmethod
    def project(cls, project_id: UUID) -> AccessScope:
        return cls(kind="project", id=project_id)

    @classmethod
    def board(cls, board_id: UUID) -> AccessScope:
        return cls(kind="board", id=board_id)


@dataclass(frozen=True)
class _ScopeChain:
    organization_id: UUID
    project_id: UUID | None = None
    board_id: UUID | None = None


async def _load_chain(session: AsyncSession, scope: AccessScope) -> _ScopeChain:
    if scope.kind == "organization":
        if await Organization.objects.by_id(scope.id).first(session) is None:
            raise NotFoundError("Organization not found")
        return _ScopeChain(organization_id=scope.id)

    board_id: UUID | None = None
    project_id = scope.id
    if scope.kind == "board":
        board = await Board.objects.by_id(scope.id).first(session)
        if board is None:
            raise NotFoundError("Board not found")
        board_id = board.id
        project_id = board.project_id

    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        raise NotFoundError("Project not found")
    return _ScopeChain(
        organization_id=project.organization_id,
        project_id=project.id,
        board_id=board_id,
    )


async def user_team_ids(
    session: AsyncSession,
    *,
    user_id: UUID,
    organization_id: UUID,
) -> set[UUID]:
    """Return ids of the user's teams that belong to `organization_id`."""
    statement = (
        select(TeamMember.team_id)
        .join(Team, col(Team.id) == col(TeamMember.team_id))
        .where(col(TeamMember.user_id) == user_id)
        .where(col(Team.organization_id) == organization_id)
    )
    return set(await session.exec(statement))


def best_grant(
    grants: Iterable[ProjectTeamGrant | BoardTeamGrant],
    team_ids: set[UUID],
) -> AccessLevel:
    """Return the highest permission among grants held by `team_ids`."""
    level = AccessLevel.NONE
    for grant in grants:
        if grant.team_id not in team_ids:
            continue
        candidate = AccessLevel(grant.permission)
        if candidate.rank > level.rank:
            level = candidate
    return level


async def resolve_access(
    session: AsyncSession,
    *,
    user_id: UUID,
    scope: AccessScope,
) -> AccessLevel:
    """Resolve the effective access level of `user_id` on `scope`."""
    chain = await _load_chain(session, scope)
    member = await get_member(
        session,
        user_id=user_id,
        organization_id=chain.organization_id,
    )
    if member is None:
        return AccessLevel.NONE
    if is_org_admin(member):
        return AccessLevel.ADMIN
    if chain.project_id is None:
        return AccessLevel.VIEW

    team_ids = await user_team_ids(
        session,
        user_id=user_id,
        organization_id=chain.organization_id,
    )
    if chain.board_id is not None:
        board_grants = await BoardTeamGrant.objects.filter_by(board_id=chain.board_id).all(session)
        if board_grants:
            return best_grant(board_grants, team_ids)

    project_grants = await ProjectTeamGrant.objects.filter_by(
        project_id=chain.project_id,
    ).all(session)
    if project_grants:
        return best_grant(project_grants, team_ids)
    return IMPLICIT_MEMBER_ACCESS


async def require_access(
    session: AsyncSession,
    *,
    user_id: UUID,
    scope: AccessScope,
    minimum: AccessLevel,
) -> AccessLevel:
    """Resolve access and raise `ForbiddenError` when below `minimum`."""
    level = await resolve_access(session, user_id=user_id, scope=scope)
    if not level.allows(minimum):
        logger.info(
            "access.denied user_id=%s scope=%s:%s level=%s minimum=%s",
            user_id,
            scope.kind,
            scope.id,
            level.value,
            minimum.value,
        )
        raise ForbiddenError(f"Requires {minimum.value} access to this {scope.kind}")
    return level
