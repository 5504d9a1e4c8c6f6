"""Task workflows: CRUD, column maintenance and batch upserts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import Task, TaskStatus, utcnow
from ..realtime.broker import ChangeBroker, ChangeEvent, ChangeType, broker
from ..repositories import TaskOrdering, TaskRepository
from ..schemas.task import TaskCreate, TaskRead, TaskUpdate, TaskUpsert

logger = logging.getLogger(__name__)


def task_record(task: Task) -> dict[str, object]:
    return TaskRead.model_validate(task).model_dump(mode="json")


class TaskService:
    """Business orchestration for ``Task`` rows.

    Every write commits before change events are published, one event per
    written row.
    """

    def __init__(self, session: AsyncSession, change_broker: ChangeBroker | None = None) -> None:
        self._session = session
        self._repository = TaskRepository(session)
        self._broker = change_broker or broker

    @property
    def repository(self) -> TaskRepository:
        return self._repository

    async def _publish(self, changes: Sequence[tuple[ChangeType, Task]]) -> None:
        for change_type, task in changes:
            await self._broker.publish(
                ChangeEvent(table="tasks", type=change_type, record=task_record(task))
            )

    async def list_tasks(
        self,
        *,
        order_by: TaskOrdering = "order",
        ascending: bool = True,
    ) -> list[Task]:
        return await self._repository.list_ordered(order_by=order_by, ascending=ascending)

    async def get_task(self, task_id: str) -> Task:
        task = await self._repository.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} does not exist.", details={"task_id": task_id})
        return task

    async def create_task(self, payload: TaskCreate) -> Task:
        """Insert a task at the end of its status column."""
        task = Task(
            title=payload.title,
            description=payload.description,
            type=payload.type,
            status=payload.status,
            assignee=payload.assignee,
            order=await self._repository.next_order(payload.status),
        )
        await self._repository.add(task)
        await self._session.commit()
        await self._repository.refresh(task)
        logger.info("Task created", extra={"task_id": task.id, "status": task.status.value})
        await self._publish([("INSERT", task)])
        return task

    async def update_task(self, task_id: str, payload: TaskUpdate) -> Task:
        """Apply a detail-view edit.

        Moving a task to another status appends it to the new column and
        closes the gap it left behind.
        """
        task = await self.get_task(task_id)
        changes = payload.model_dump(exclude_unset=True)
        touched_at = utcnow()
        written: list[Task] = [task]

        previous_status = task.status
        new_status = changes.get("status")
        moved = new_status is not None and new_status != previous_status
        try:
            if moved:
                changes["order"] = await self._repository.next_order(new_status)
            self._repository.apply_changes(task, changes, touched_at=touched_at)
            if moved:
                written.extend(await self._compact_column(previous_status, touched_at=touched_at))
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        logger.info("Task updated", extra={"task_id": task.id, "fields": sorted(changes)})
        await self._publish([("UPDATE", row) for row in written])
        return task

    async def _compact_column(self, status: TaskStatus, *, touched_at: datetime) -> list[Task]:
        compacted: list[Task] = []
        for index, row in enumerate(await self._repository.list_column(status)):
            if row.order != index:
                self._repository.apply_changes(row, {"order": index}, touched_at=touched_at)
                compacted.append(row)
        return compacted

    async def upsert_tasks(self, rows: Sequence[TaskUpsert]) -> list[Task]:
        """Insert-or-update ``rows`` by identifier in one transaction.

        Nothing is written when any row for an unknown identifier lacks a
        title.
        """
        if not rows:
            return []
        existing_ids = {task.id for task in await self._repository.list_by_ids([row.id for row in rows])}
        missing_title = sorted(
            {row.id for row in rows if row.id not in existing_ids and not row.title}
        )
        if missing_title:
            raise ValidationError(
                "Title is required when inserting a task.",
                details={"task_ids": missing_title},
            )

        try:
            written = await self._repository.upsert_many([(row.id, row.changes()) for row in rows])
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        logger.info("Tasks upserted", extra={"count": len(written)})
        unique: dict[str, Task] = {task.id: task for task in written}
        await self._publish(
            [
                ("UPDATE" if task_id in existing_ids else "INSERT", task)
                for task_id, task in unique.items()
            ]
        )
        return list(unique.values())


__all__ = ["TaskService", "task_record"]
