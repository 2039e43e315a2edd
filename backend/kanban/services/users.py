"""User profile edits made by the user themselves."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kanban.core.errors import ValidationError
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from kanban.models.users import User
    from kanban.schemas.users import UserUpdate

logger = get_logger(__name__)


def _clean_optional_name(value: str | None, *, label: str) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        raise ValidationError(f"{label} must not be blank")
    return cleaned


async def update_profile(session: AsyncSession, *, user: User, payload: UserUpdate) -> User:
    """Apply the editable profile fields; email and identity stay provider-owned."""
    updates = payload.model_dump(exclude_unset=True)
    if "first_name" in updates:
        user.first_name = _clean_optional_name(updates["first_name"], label="First name")
    if "last_name" in updates:
        user.last_name = _clean_optional_name(updates["last_name"], label="Last name")
    if not updates:
        return user
    user.updated_at = utcnow()
    saved = await crud.save(session, user)
    logger.info("user.profile_updated user_id=%s fields=%s", user.id, ",".join(sorted(updates)))
    return saved
