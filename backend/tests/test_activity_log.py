# ruff: noqa

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

import pytest

from kanban.core.errors import ValidationError
from kanban.models.activity_log import ActivityLogEntry
from kanban.services.activity import record_activity


@dataclass
class _FakeSession:
    added: list[Any] = field(default_factory=list)
    committed: int = 0
    refreshed: list[Any] = field(default_factory=list)

    def add(self, value: Any) -> None:
        self.added.append(value)

    async def commit(self) -> None:
        self.committed += 1

    async def refresh(self, value: Any) -> None:
        self.refreshed.append(value)


@pytest.mark.asyncio
async def test_record_activity_stringifies_values() -> None:
    session = _FakeSession()
    old_column, new_column = uuid4(), uuid4()

    entry = await record_activity(
        session,  # type: ignore[arg-type]
        task_id=uuid4(),
        user_id=uuid4(),
        action_type="column_change",
        field_name="column",
        old_value=old_column,
        new_value=new_column,
    )

    assert isinstance(entry, ActivityLogEntry)
    assert entry.old_value == str(old_column)
    assert entry.new_value == str(new_column)
    assert session.added == [entry]
    assert session.committed == 1
    assert session.refreshed == [entry]


@pytest.mark.asyncio
async def test_record_activity_can_join_an_open_transaction() -> None:
    session = _FakeSession()
    due = datetime(2026, 3, 1, 9, 30)

    entry = await record_activity(
        session,  # type: ignore[arg-type]
        task_id=uuid4(),
        user_id=uuid4(),
        action_type="updated",
        field_name="due_date",
        old_value=None,
        new_value=due,
        commit=False,
    )

    assert entry.old_value is None
    assert entry.new_value == "2026-03-01T09:30:00"
    assert session.committed == 0


@pytest.mark.asyncio
async def test_record_activity_rejects_unknown_actions() -> None:
    session = _FakeSession()

    with pytest.raises(ValidationError):
        await record_activity(
            session,  # type: ignore[arg-type]
            task_id=uuid4(),
            user_id=uuid4(),
            action_type="deleted",
        )
    assert session.added == []
