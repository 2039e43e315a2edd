"""Async limit/offset pagination over SQLModel select statements."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from fastapi_pagination.ext.sqlalchemy import apaginate

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import Select, SelectOfScalar

Transformer = Callable[[Sequence[Any]], Sequence[Any]]


async def paginate(
    session: AsyncSession,
    statement: Select[Any] | SelectOfScalar[Any],
    *,
    transformer: Transformer | None = None,
) -> LimitOffsetPage[Any]:
    """Run `statement` under the current request's limit/offset params."""
    if transformer is None:
        return await apaginate(session, statement)
    return await apaginate(session, statement, transformer=transformer)
