"""Base SQLModel class exposing the ``objects`` query manager."""

from __future__ import annotations

from typing import ClassVar

from sqlmodel import SQLModel

from kanban.db.query_manager import ManagerDescriptor


class QueryModel(SQLModel, table=False):
    """Table base class; ``Model.objects`` builds chained select queries."""

    objects: ClassVar[ManagerDescriptor] = ManagerDescriptor()
