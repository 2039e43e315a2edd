"""Object storage collaborator used for task attachments.

Only two capabilities are needed here: obtaining an upload target and asking
whether a user may read or write a stored object. URL signing and ACL storage
live in the storage service itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol

import httpx
from fastapi import HTTPException, status

from kanban.core.config import settings
from kanban.core.logging import get_logger

if TYPE_CHECKING:
    from uuid import UUID

logger = get_logger(__name__)

ObjectPermission = Literal["read", "write"]


@dataclass(frozen=True)
class UploadTarget:
    """Pre-authorized location the client uploads bytes to."""

    upload_url: str
    object_path: str


class ObjectStorage(Protocol):
    """Upload-target and ACL operations exposed by the storage service."""

    async def get_upload_target(self) -> UploadTarget: ...

    async def can_access(
        self,
        object_path: str,
        user_id: UUID,
        permission: ObjectPermission,
    ) -> bool: ...


class HttpObjectStorage:
    """`ObjectStorage` backed by the storage service's HTTP API."""

    def __init__(self, base_url: str, *, timeout: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _post(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        if not self.base_url:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Object storage is not configured",
            )
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(path, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "storage.request_failed path=%s error_type=%s",
                path,
                exc.__class__.__name__,
            )
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Object storage request failed",
            ) from exc
        if not isinstance(body, dict):
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Object storage returned an unexpected payload",
            )
        return body

    async def get_upload_target(self) -> UploadTarget:
        body = await self._post("/uploads", {})
        upload_url = body.get("upload_url")
        object_path = body.get("object_path")
        if not isinstance(upload_url, str) or not isinstance(object_path, str):
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Object storage returned an unexpected payload",
            )
        return UploadTarget(upload_url=upload_url, object_path=object_path)

    async def can_access(
        self,
        object_path: str,
        user_id: UUID,
        permission: ObjectPermission,
    ) -> bool:
        body = await self._post(
            "/access-checks",
            {"object_path": object_path, "user_id": str(user_id), "permission": permission},
        )
        return body.get("allowed") is True


def get_object_storage() -> ObjectStorage:
    """FastAPI dependency returning the configured storage client."""
    return HttpObjectStorage(
        settings.object_storage_url,
        timeout=settings.object_storage_timeout_seconds,
    )
