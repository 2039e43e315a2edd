# ruff: noqa: INP001

from __future__ import annotations

import pytest

from factories import make_user
from kanban.core.errors import ValidationError
from kanban.models.users import User
from kanban.schemas.users import UserUpdate
from kanban.services.users import update_profile


@pytest.mark.asyncio
async def test_update_profile_trims_names_and_keeps_email(session) -> None:
    user = await make_user(session, email="ada@example.com")

    updated = await update_profile(
        session,
        user=user,
        payload=UserUpdate(first_name="  Ada ", last_name="Lovelace"),
    )

    stored = await User.objects.by_id(user.id).first(session)
    assert stored is not None
    assert (stored.first_name, stored.last_name, stored.email) == ("Ada", "Lovelace", "ada@example.com")
    assert updated.updated_at >= updated.created_at


@pytest.mark.asyncio
async def test_update_profile_clears_with_null_and_rejects_blank(session) -> None:
    user = await make_user(session)
    await update_profile(session, user=user, payload=UserUpdate(first_name="Ada"))

    cleared = await update_profile(session, user=user, payload=UserUpdate(first_name=None))
    assert cleared.first_name is None

    with pytest.raises(ValidationError):
        await update_profile(session, user=user, payload=UserUpdate(last_name="   "))
