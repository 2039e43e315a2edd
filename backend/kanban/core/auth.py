"""Identity gateway: resolve the calling user from a bearer token.

Two modes are supported. ``local`` compares the bearer token against a shared
secret and maps it to a single local user. ``clerk`` verifies a Clerk session
token and mirrors the subject's profile into the ``users`` table.
"""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING

import httpx
from clerk_backend_api import Clerk
from clerk_backend_api.models.clerkerrors import ClerkErrors
from clerk_backend_api.models.sdkerror import SDKError
from clerk_backend_api.security.types import AuthenticateRequestOptions, AuthStatus, RequestState
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from kanban.core.auth_mode import AuthMode
from kanban.core.config import settings
from kanban.core.logging import get_logger
from kanban.core.time import utcnow
from kanban.db import crud
from kanban.db.session import get_session
from kanban.models.users import User

if TYPE_CHECKING:
    from clerk_backend_api.models.user import User as ClerkUser
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)
LOCAL_AUTH_EXTERNAL_ID = "local-auth-user"
LOCAL_AUTH_FIRST_NAME = "Local"
LOCAL_AUTH_LAST_NAME = "User"


class ClerkTokenPayload(BaseModel):
    """JWT claims payload shape required from Clerk tokens."""

    sub: str


@dataclass(frozen=True)
class IdentityProfile:
    """Profile fields mirrored from the identity provider."""

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


@dataclass
class AuthContext:
    """Authenticated caller passed explicitly into services."""

    user: User


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def _non_empty_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _normalize_email(value: object) -> str | None:
    text = _non_empty_str(value)
    return text.lower() if text else None


def profile_from_claims(claims: dict[str, object]) -> IdentityProfile:
    """Pull email and name fields out of session token claims."""
    email: str | None = None
    for key in ("email", "email_address", "primary_email_address"):
        email = _normalize_email(claims.get(key))
        if email:
            break
    first = _non_empty_str(claims.get("given_name")) or _non_empty_str(claims.get("first_name"))
    last = _non_empty_str(claims.get("family_name")) or _non_empty_str(claims.get("last_name"))
    return IdentityProfile(email=email, first_name=first, last_name=last)


def profile_from_clerk_user(profile: ClerkUser | None) -> IdentityProfile:
    """Pull the primary email and name fields out of a Clerk user record."""
    if profile is None:
        return IdentityProfile()
    primary_id = _non_empty_str(getattr(profile, "primary_email_address_id", None))
    email: str | None = None
    for item in getattr(profile, "email_addresses", None) or []:
        candidate = _normalize_email(getattr(item, "email_address", None))
        if not candidate:
            continue
        if primary_id and _non_empty_str(getattr(item, "id", None)) == primary_id:
            email = candidate
            break
        if email is None:
            email = candidate
    return IdentityProfile(
        email=email,
        first_name=_non_empty_str(getattr(profile, "first_name", None)),
        last_name=_non_empty_str(getattr(profile, "last_name", None)),
    )


def _normalize_clerk_server_url(raw: str) -> str | None:
    server_url = raw.strip().rstrip("/")
    if not server_url:
        return None
    if not server_url.endswith("/v1"):
        server_url = f"{server_url}/v1"
    return server_url


async def _authenticate_clerk_request(request: Request) -> RequestState:
    httpx_request = httpx.Request(
        request.method,
        str(request.url),
        headers=dict(request.headers),
    )
    options = AuthenticateRequestOptions(
        secret_key=settings.clerk_secret_key.strip(),
        clock_skew_in_ms=int(settings.clerk_leeway * 1000),
        accepts_token=["session_token"],
    )
    sdk = Clerk(bearer_auth=options.secret_key or "")
    return await run_in_threadpool(sdk.authenticate_request, httpx_request, options)


async def _fetch_clerk_profile(external_id: str) -> IdentityProfile:
    server_url = _normalize_clerk_server_url(settings.clerk_api_url or "")
    external_id_log = external_id[-6:]
    try:
        async with Clerk(
            bearer_auth=settings.clerk_secret_key.strip(),
            server_url=server_url,
            timeout_ms=5000,
        ) as clerk:
            profile = await clerk.users.get_async(user_id=external_id)
    except ClerkErrors as exc:
        logger.warning(
            "auth.clerk.profile.fetch_failed external_id=%s reason=clerk_errors error_type=%s",
            external_id_log,
            exc.__class__.__name__,
        )
    except SDKError as exc:
        logger.warning(
            "auth.clerk.profile.fetch_failed external_id=%s reason=sdk_error status=%s",
            external_id_log,
            exc.status_code,
        )
    except httpx.HTTPError as exc:
        logger.warning(
            "auth.clerk.profile.fetch_failed external_id=%s reason=transport error=%s",
            external_id_log,
            str(exc) or exc.__class__.__name__,
        )
    else:
        return profile_from_clerk_user(profile)
    return IdentityProfile()


def apply_profile(user: User, profile: IdentityProfile) -> bool:
    """Copy non-empty profile fields onto `user`; return whether anything changed."""
    changed = False
    for field_name in ("email", "first_name", "last_name"):
        value = getattr(profile, field_name)
        if value and getattr(user, field_name) != value:
            setattr(user, field_name, value)
            changed = True
    if changed:
        user.updated_at = utcnow()
    return changed


async def sync_user(
    session: AsyncSession,
    *,
    external_id: str,
    claims: dict[str, object],
) -> User:
    """Get or create the local mirror of an identity-provider subject."""
    claim_profile = profile_from_claims(claims)
    user, created = await crud.get_or_create(
        session,
        User,
        external_id=external_id,
        defaults={
            "email": claim_profile.email,
            "first_name": claim_profile.first_name,
            "last_name": claim_profile.last_name,
        },
    )
    changed = apply_profile(user, claim_profile)
    # Only hit the Clerk API while the mirror is incomplete.
    if created or not user.email:
        changed = apply_profile(user, await _fetch_clerk_profile(external_id)) or changed
    if changed:
        await crud.save(session, user)
        logger.info("auth.user.sync external_id=%s created=%s", external_id[-6:], created)
    return user


async def _get_or_create_local_user(session: AsyncSession) -> User:
    user, _created = await crud.get_or_create(
        session,
        User,
        external_id=LOCAL_AUTH_EXTERNAL_ID,
        defaults={
            "email": settings.local_auth_email,
            "first_name": LOCAL_AUTH_FIRST_NAME,
            "last_name": LOCAL_AUTH_LAST_NAME,
        },
    )
    return user


def _local_token_matches(token: str | None) -> bool:
    expected = settings.local_auth_token.strip()
    return bool(token and expected and compare_digest(token, expected))


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the authenticated caller for the configured auth mode."""
    if settings.auth_mode == AuthMode.LOCAL:
        token = _extract_bearer_token(request.headers.get("Authorization"))
        if not _local_token_matches(token):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        return AuthContext(user=await _get_or_create_local_user(session))

    request_state = await _authenticate_clerk_request(request)
    if request_state.status != AuthStatus.SIGNED_IN or not isinstance(request_state.payload, dict):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    claims: dict[str, object] = {str(k): v for k, v in request_state.payload.items()}
    try:
        external_id = ClerkTokenPayload.model_validate(claims).sub
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
    if not external_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    user = await sync_user(session, external_id=external_id, claims=claims)
    return AuthContext(user=user)
