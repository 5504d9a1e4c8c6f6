"""Drag-and-drop reordering of kanban columns.

Columns map a status value to the tasks carrying it, in display order. A move
takes one task out of its source column and drops it at an index of the
destination column; afterwards every touched column is renumbered so its
``order`` values run ``0..n-1`` left to right. The functions here are pure:
input columns are never mutated and the rows that need persisting are
returned alongside the new columns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable

from ..errors import InvalidMoveError
from ..models import TaskStatus, utcnow
from ..schemas.task import TaskRead, TaskUpsert

Columns = dict[str, list[TaskRead]]


@dataclass(frozen=True, slots=True)
class Move:
    """A drop event. ``destination_status`` is ``None`` when the drop was cancelled."""

    task_id: str
    source_status: str
    source_index: int
    destination_status: str | None = None
    destination_index: int | None = None

    @property
    def cancelled(self) -> bool:
        return self.destination_status is None or self.destination_index is None

    @property
    def is_noop(self) -> bool:
        return (
            self.source_status == self.destination_status
            and self.source_index == self.destination_index
        )


@dataclass(frozen=True, slots=True)
class ReorderResult:
    columns: Columns
    changed: list[TaskRead]


def status_key(status: str | Enum) -> str:
    return status.value if isinstance(status, Enum) else str(status)


def group_by_status(
    tasks: Iterable[TaskRead],
    statuses: Iterable[str | Enum] = TaskStatus,
) -> Columns:
    """Group ``tasks`` into columns sorted by ``(order, id)``.

    Every status in ``statuses`` gets a column, even when empty. Tasks with any
    other status get a column of their own after the known ones.
    """

    columns: Columns = {status_key(status): [] for status in statuses}
    for task in tasks:
        columns.setdefault(status_key(task.status), []).append(task)
    return {
        key: sorted(items, key=lambda task: (task.order, task.id))
        for key, items in columns.items()
    }


def _renumber(
    items: list[TaskRead],
    *,
    status: TaskStatus,
    moved_id: str,
    timestamp: datetime,
) -> tuple[list[TaskRead], list[TaskRead]]:
    renumbered: list[TaskRead] = []
    changed: list[TaskRead] = []
    for index, task in enumerate(items):
        updates: dict[str, object] = {}
        if task.order != index:
            updates["order"] = index
        if task.id == moved_id and task.status != status:
            updates["status"] = status
        if updates or task.id == moved_id:
            task = task.model_copy(update={**updates, "updated_at": timestamp})
            changed.append(task)
        renumbered.append(task)
    return renumbered, changed


def _moved_first(changed: list[TaskRead], moved_id: str) -> list[TaskRead]:
    return sorted(changed, key=lambda task: task.id != moved_id)


def apply_move(
    columns: Columns,
    move: Move,
    *,
    now: datetime | None = None,
) -> ReorderResult | None:
    """Return the columns after ``move`` or ``None`` when nothing should change.

    Raises :class:`InvalidMoveError` when the move names a column or task that
    is not on the board, or a negative index.
    """

    target_key, target_index = move.destination_status, move.destination_index
    if target_key is None or target_index is None or move.is_noop:
        return None

    if move.source_index < 0 or target_index < 0:
        raise InvalidMoveError("Move indexes must not be negative.")
    source = columns.get(move.source_status)
    if source is None:
        raise InvalidMoveError(f"Unknown source column {move.source_status!r}.")
    destination = columns.get(target_key)
    if destination is None:
        raise InvalidMoveError(f"Unknown destination column {target_key!r}.")
    try:
        destination_status = TaskStatus(target_key)
    except ValueError as exc:
        raise InvalidMoveError(f"{target_key!r} is not a task status.") from exc

    position = next((i for i, task in enumerate(source) if task.id == move.task_id), None)
    if position is None:
        raise InvalidMoveError(
            f"Task {move.task_id!r} is not in column {move.source_status!r}.",
            details={"task_id": move.task_id},
        )

    timestamp = now or utcnow()
    updated = dict(columns)

    remaining = list(source)
    task = remaining.pop(position)

    if move.source_status == target_key:
        remaining.insert(min(target_index, len(remaining)), task)
        updated[target_key], changed = _renumber(
            remaining,
            status=destination_status,
            moved_id=task.id,
            timestamp=timestamp,
        )
        return ReorderResult(columns=updated, changed=_moved_first(changed, task.id))

    updated[move.source_status], source_changed = _renumber(
        remaining,
        status=task.status,
        moved_id=task.id,
        timestamp=timestamp,
    )
    target = list(destination)
    target.insert(min(target_index, len(target)), task)
    updated[target_key], destination_changed = _renumber(
        target,
        status=destination_status,
        moved_id=task.id,
        timestamp=timestamp,
    )
    return ReorderResult(
        columns=updated,
        changed=_moved_first(destination_changed + source_changed, task.id),
    )


def changed_rows_to_upserts(result: ReorderResult) -> list[TaskUpsert]:
    """Build the batch upsert for the rows a move touched."""

    return [
        TaskUpsert(
            id=task.id,
            status=task.status,
            order=task.order,
            updated_at=task.updated_at,
        )
        for task in result.changed
    ]


__all__ = [
    "Columns",
    "Move",
    "ReorderResult",
    "apply_move",
    "changed_rows_to_upserts",
    "group_by_status",
    "status_key",
]
