# ruff: noqa: INP001
"""Identity mirroring from token claims and provider profiles."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from kanban.core import auth as auth_module
from kanban.core.auth import IdentityProfile, apply_profile, profile_from_claims, profile_from_clerk_user
from kanban.models.users import User


def test_profile_from_claims_normalizes_email_and_names() -> None:
    profile = profile_from_claims(
        {"email_address": "  Ada@Example.COM ", "given_name": "Ada", "last_name": " Lovelace "},
    )

    assert profile == IdentityProfile(email="ada@example.com", first_name="Ada", last_name="Lovelace")


def test_profile_from_clerk_user_prefers_primary_email() -> None:
    record = SimpleNamespace(
        primary_email_address_id="e2",
        email_addresses=[
            SimpleNamespace(id="e1", email_address="old@example.com"),
            SimpleNamespace(id="e2", email_address="Primary@Example.com"),
        ],
        first_name="Grace",
        last_name=None,
    )

    profile = profile_from_clerk_user(record)  # type: ignore[arg-type]

    assert profile.email == "primary@example.com"
    assert profile.first_name == "Grace"
    assert profile.last_name is None
    assert profile_from_clerk_user(None) == IdentityProfile()


def test_apply_profile_only_overwrites_with_non_empty_values() -> None:
    user = User(external_id="u1", email="keep@example.com", first_name="Old")

    changed = apply_profile(user, IdentityProfile(email=None, first_name="New"))

    assert changed is True
    assert user.email == "keep@example.com"
    assert user.first_name == "New"
    assert apply_profile(user, IdentityProfile(first_name="New")) is False


@pytest.mark.asyncio
async def test_sync_user_creates_then_reuses_mirror(session, monkeypatch: pytest.MonkeyPatch) -> None:
    fetched: list[str] = []

    async def _fake_fetch(external_id: str) -> IdentityProfile:
        fetched.append(external_id)
        return IdentityProfile(email="ada@example.com", last_name="Lovelace")

    monkeypatch.setattr(auth_module, "_fetch_clerk_profile", _fake_fetch)

    created = await auth_module.sync_user(
        session,
        external_id="user_abc123",
        claims={"sub": "user_abc123", "given_name": "Ada"},
    )
    again = await auth_module.sync_user(
        session,
        external_id="user_abc123",
        claims={"sub": "user_abc123"},
    )

    assert created.id == again.id
    assert again.email == "ada@example.com"
    assert again.first_name == "Ada"
    assert again.last_name == "Lovelace"
    # The second call already has an email and skips the provider lookup.
    assert fetched == ["user_abc123"]
