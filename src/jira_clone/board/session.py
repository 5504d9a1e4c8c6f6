"""One viewer's kanban board with optimistic moves.

Moves are applied to the local columns immediately and persisted afterwards.
Every optimistic mutation gets a new local revision; tasks touched by a move
stay pending until its batch upsert settles. A re-fetch never replaces a task
that was pending at any point during the re-fetch or was mutated locally
after the re-fetch started. When a
batch upsert fails the session reports the error and re-fetches the whole
board from the backend.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Callable

from ..realtime.broker import ChangeEvent, Subscription
from ..schemas.board import BoardColumnRead, BoardRead
from ..schemas.profile import ProfileRead
from ..schemas.task import TaskRead
from .gateway import BoardGateway
from .reorder import Columns, Move, ReorderResult, apply_move, changed_rows_to_upserts, group_by_status

logger = logging.getLogger(__name__)

MOVE_FAILED_PREFIX = "Failed to update task order/status"


@dataclass(frozen=True, slots=True)
class BoardSnapshot:
    columns: Columns
    profiles: list[ProfileRead] = field(default_factory=list)
    revision: int = 0
    error: str | None = None

    def to_schema(self) -> BoardRead:
        return BoardRead(
            columns=[
                BoardColumnRead(status=status, tasks=list(tasks))
                for status, tasks in self.columns.items()
            ],
            profiles=list(self.profiles),
            revision=self.revision,
            error=self.error,
        )


ChangeListener = Callable[[BoardSnapshot], None]


class BoardSession:
    def __init__(self, gateway: BoardGateway, *, on_change: ChangeListener | None = None) -> None:
        self._gateway = gateway
        self._listeners: list[ChangeListener] = [on_change] if on_change else []
        self._columns: Columns = group_by_status([])
        self._profiles: list[ProfileRead] = []
        self._revision = 0
        self._task_revisions: dict[str, int] = {}
        self._pending: dict[str, int] = {}
        self._subscriptions: list[Subscription] = []
        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_requested = False
        self._closed = False
        self.error: str | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def pending_task_ids(self) -> set[str]:
        return set(self._pending)

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            columns={status: list(tasks) for status, tasks in self._columns.items()},
            profiles=list(self._profiles),
            revision=self._revision,
            error=self.error,
        )

    def _notify(self) -> None:
        if self._closed or not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    async def load(self) -> bool:
        """Fetch tasks and profiles; returns ``False`` if the tasks could not be loaded."""

        return await self.refresh()

    async def _fetch_profiles(self) -> list[ProfileRead] | None:
        try:
            return await self._gateway.fetch_profiles()
        except Exception:
            logger.exception("Failed to fetch profiles for board")
            return None

    async def refresh(self) -> bool:
        """Re-fetch the board without clobbering local mutations."""

        started_at = self._revision
        # A move settling mid-fetch must still win over the fetched rows.
        pending_at_start = set(self._pending)
        try:
            tasks = await self._gateway.fetch_tasks()
        except Exception as exc:
            if self._closed:
                return False
            logger.warning("Failed to fetch tasks for board", extra={"error": str(exc)})
            self.error = f"Failed to fetch tasks: {exc}"
            self._notify()
            return False
        profiles = await self._fetch_profiles()
        if self._closed:
            return False

        keep_local = pending_at_start | set(self._pending) | {
            task_id for task_id, revision in self._task_revisions.items() if revision > started_at
        }
        local = [task for tasks_in_column in self._columns.values() for task in tasks_in_column]
        merged: list[TaskRead] = [task for task in tasks if task.id not in keep_local]
        merged.extend(task for task in local if task.id in keep_local)
        self._columns = group_by_status(merged)
        if profiles is not None:
            self._profiles = profiles
        self._notify()
        return True

    def apply_optimistic(self, move: Move) -> ReorderResult | None:
        """Apply ``move`` to the local columns without waiting on the backend."""

        result = apply_move(self._columns, move)
        if result is None:
            return None
        self._revision += 1
        for task in result.changed:
            self._pending[task.id] = self._revision
            self._task_revisions[task.id] = self._revision
        self._columns = result.columns
        self.error = None
        self._notify()
        return result

    def _settle(self, revision: int) -> None:
        for task_id, pending_revision in list(self._pending.items()):
            if pending_revision == revision:
                del self._pending[task_id]

    async def move(self, move: Move) -> bool:
        """Apply ``move`` optimistically and persist it.

        Returns ``True`` once the changed rows are stored. On failure the
        error is recorded and the board is re-fetched.
        """

        result = self.apply_optimistic(move)
        if result is None:
            return False
        revision = self._revision
        try:
            await self._gateway.upsert_tasks(changed_rows_to_upserts(result))
        except Exception as exc:
            self._settle(revision)
            if self._closed:
                return False
            logger.warning(
                "Board move failed; reloading",
                extra={"task_id": move.task_id, "error": str(exc)},
            )
            self.error = f"{MOVE_FAILED_PREFIX}: {exc}"
            self._notify()
            await self.refresh()
            return False
        self._settle(revision)
        return True

    def handle_change(self, event: ChangeEvent) -> None:
        """Schedule a refresh; bursts of changes collapse into one refresh loop."""

        if self._closed:
            return
        self._refresh_requested = True
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop())

    async def _refresh_loop(self) -> None:
        while self._refresh_requested and not self._closed:
            self._refresh_requested = False
            await self.refresh()

    async def wait_idle(self) -> None:
        while self._refresh_task is not None and not self._refresh_task.done():
            await self._refresh_task

    async def attach(self) -> None:
        """Listen for changes to tasks and profiles."""

        for table in ("tasks", "profiles"):
            self._subscriptions.append(await self._gateway.subscribe(table, self.handle_change))

    async def close(self) -> None:
        self._closed = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            await subscription.unsubscribe()
        task = self._refresh_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._listeners.clear()


__all__ = ["MOVE_FAILED_PREFIX", "BoardSession", "BoardSnapshot", "ChangeListener"]
