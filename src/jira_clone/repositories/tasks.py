"""Repository for the ``tasks`` table."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Mapping, Sequence

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskStatus, utcnow
from .base import BaseRepository

TaskOrdering = Literal["order", "created_at", "updated_at"]

_ORDER_COLUMNS = {
    "order": Task.order,
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
}


class TaskRepository(BaseRepository[Task]):
    """Task persistence: ordered listing, column maintenance and batch upsert."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def list_ordered(
        self,
        *,
        order_by: TaskOrdering = "order",
        ascending: bool = True,
    ) -> list[Task]:
        """Return every task sorted on ``order_by`` with the id as tie-break."""
        column = _ORDER_COLUMNS[order_by]
        primary = column.asc() if ascending else column.desc()
        result = await self.session.execute(select(Task).order_by(primary, Task.id.asc()))
        return list(result.scalars().all())

    async def list_column(self, status: TaskStatus) -> list[Task]:
        """Return one status column in display order."""
        result = await self.session.execute(
            select(Task).where(Task.status == status).order_by(Task.order.asc(), Task.id.asc())
        )
        return list(result.scalars().all())

    async def next_order(self, status: TaskStatus) -> int:
        """Return the position just past the end of ``status``'s column."""
        result = await self.session.execute(
            select(func.max(Task.order)).where(Task.status == status)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else int(current) + 1

    def apply_changes(
        self,
        task: Task,
        changes: Mapping[str, Any],
        *,
        touched_at: datetime | None = None,
    ) -> Task:
        """Copy ``changes`` onto ``task`` and stamp ``updated_at``."""
        for field_name, value in changes.items():
            if field_name in {"id", "created_at"}:
                continue
            setattr(task, field_name, value)
        if "updated_at" not in changes or changes["updated_at"] is None:
            task.updated_at = touched_at or utcnow()
        return task

    async def upsert_many(self, rows: Sequence[tuple[str, Mapping[str, Any]]]) -> list[Task]:
        """Insert or update each ``(id, changes)`` pair and flush once.

        Rows are returned in input order. The caller owns the transaction.
        """
        touched_at = utcnow()
        existing = {task.id: task for task in await self.list_by_ids([row_id for row_id, _ in rows])}
        written: list[Task] = []
        for row_id, changes in rows:
            task = existing.get(row_id)
            if task is None:
                task = Task(id=row_id, title=str(changes["title"]))
                self.session.add(task)
                existing[row_id] = task
            written.append(self.apply_changes(task, changes, touched_at=touched_at))
        await self.session.flush()
        return written


__all__ = ["TaskOrdering", "TaskRepository"]
