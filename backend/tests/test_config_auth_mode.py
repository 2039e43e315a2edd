# ruff: noqa: INP001
"""Settings validation for auth mode and derived defaults."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from kanban.core.auth_mode import AuthMode
from kanban.core.config import Settings

LOCAL_TOKEN_ERROR = (
    "LOCAL_AUTH_TOKEN must be at least 50 characters and non-placeholder when AUTH_MODE=local"
)


@pytest.mark.parametrize("token", ["", "x" * 49, "change-me", "  REPLACE-ME  "])
def test_local_mode_rejects_weak_tokens(token: str) -> None:
    with pytest.raises(ValidationError, match=LOCAL_TOKEN_ERROR):
        Settings(_env_file=None, auth_mode=AuthMode.LOCAL, local_auth_token=token)


def test_local_mode_accepts_long_token() -> None:
    token = "k" * 50
    settings = Settings(_env_file=None, auth_mode=AuthMode.LOCAL, local_auth_token=token)

    assert settings.auth_mode == AuthMode.LOCAL
    assert settings.local_auth_token == token
    assert settings.invitation_ttl_days == 7


def test_clerk_mode_requires_secret_key() -> None:
    with pytest.raises(
        ValidationError,
        match="CLERK_SECRET_KEY must be set and non-empty when AUTH_MODE=clerk",
    ):
        Settings(_env_file=None, auth_mode=AuthMode.CLERK, clerk_secret_key=" ")


def test_dev_environment_enables_auto_migrate_unless_overridden(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("DB_AUTO_MIGRATE", raising=False)
    base = {"_env_file": None, "auth_mode": AuthMode.CLERK, "clerk_secret_key": "sk_test"}

    assert Settings(**base, environment="dev").db_auto_migrate is True
    assert Settings(**base, environment="prod").db_auto_migrate is False
    assert Settings(**base, environment="dev", db_auto_migrate=False).db_auto_migrate is False
