"""Small shared response schemas."""

from __future__ import annotations

from sqlmodel import SQLModel


class OkResponse(SQLModel):
    """Acknowledgement returned by delete and other side-effect endpoints."""

    ok: bool = True
