"""Current-user endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from kanban.api.deps import AUTH_DEP, SESSION_DEP
from kanban.schemas.users import UserRead, UserUpdate
from kanban.services import users as user_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.core.auth import AuthContext

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def get_me(auth: AuthContext = AUTH_DEP) -> UserRead:
    """Return the authenticated user."""
    return UserRead.model_validate(auth.user, from_attributes=True)


@router.patch("/me", response_model=UserRead)
async def update_me(
    payload: UserUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> UserRead:
    """Update the caller's display name."""
    user = await user_service.update_profile(session, user=auth.user, payload=payload)
    return UserRead.model_validate(user, from_attributes=True)
