"""Generic write helpers shared by services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: Any,
    commit: bool = True,
) -> int:
    """Bulk-delete rows matching ``criteria`` and return the affected row count."""
    result = await session.exec(delete(model).where(*criteria))
    if commit:
        await session.commit()
    return int(getattr(result, "rowcount", 0) or 0)


async def save(
    session: AsyncSession,
    obj: ModelT,
    *,
    commit: bool = True,
) -> ModelT:
    """Add ``obj`` and either commit + refresh it or just flush it."""
    session.add(obj)
    if commit:
        await session.commit()
        await session.refresh(obj)
    else:
        await session.flush()
    return obj


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: dict[str, Any] | None = None,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """Fetch a row by ``lookup`` or insert one, tolerating a concurrent insert."""
    existing = await model.objects.filter_by(**lookup).first(session)  # type: ignore[attr-defined]
    if existing is not None:
        return existing, False
    obj = model(**lookup, **(defaults or {}))
    session.add(obj)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = await model.objects.filter_by(**lookup).first(session)  # type: ignore[attr-defined]
        if existing is None:
            raise
        return existing, False
    await session.refresh(obj)
    return obj, True
