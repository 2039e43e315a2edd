"""Service-level error taxonomy.

Every core operation reports a failure as exactly one of these. They are
``HTTPException`` subclasses so routers can let them propagate and the shared
error handlers render them with a machine-readable ``code``.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class for domain failures surfaced to API callers."""

    default_status: int = status.HTTP_400_BAD_REQUEST
    code: str = "service_error"

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        super().__init__(status_code=self.default_status, detail=detail)
        self.retryable = retryable


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    default_status = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ForbiddenError(ServiceError):
    """Resolved access level is insufficient for the requested operation."""

    default_status = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class ValidationError(ServiceError):
    """Malformed input or an invariant violation caught before the write."""

    default_status = status.HTTP_400_BAD_REQUEST
    code = "validation_failed"


class ConflictError(ServiceError):
    """Constraint violation reported by the store."""

    default_status = status.HTTP_409_CONFLICT
    code = "conflict"
