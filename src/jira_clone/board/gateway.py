"""Backend access used by board sessions."""

from __future__ import annotations

from typing import Protocol, Sequence

from ..db.session import SessionFactory
from ..realtime.broker import ChangeBroker, ChangeCallback, Subscription, broker
from ..schemas.profile import ProfileRead
from ..schemas.task import TaskRead, TaskUpsert
from ..services import ProfileService, TaskService


class BoardGateway(Protocol):
    """What a board session needs from the backend."""

    async def fetch_tasks(self) -> list[TaskRead]: ...

    async def fetch_profiles(self) -> list[ProfileRead]: ...

    async def upsert_tasks(self, rows: Sequence[TaskUpsert]) -> list[TaskRead]: ...

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription: ...


class DatabaseBoardGateway:
    """Gateway backed by the service layer; each call uses its own session."""

    def __init__(
        self,
        session_factory: SessionFactory,
        change_broker: ChangeBroker | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._broker = change_broker or broker

    async def fetch_tasks(self) -> list[TaskRead]:
        async with self._session_factory() as session:
            tasks = await TaskService(session, self._broker).list_tasks(order_by="order")
            return [TaskRead.model_validate(task) for task in tasks]

    async def fetch_profiles(self) -> list[ProfileRead]:
        async with self._session_factory() as session:
            profiles = await ProfileService(session).list_profiles()
            return [ProfileRead.model_validate(profile) for profile in profiles]

    async def upsert_tasks(self, rows: Sequence[TaskUpsert]) -> list[TaskRead]:
        async with self._session_factory() as session:
            written = await TaskService(session, self._broker).upsert_tasks(rows)
            return [TaskRead.model_validate(task) for task in written]

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        return await self._broker.subscribe(table, callback)


__all__ = ["BoardGateway", "DatabaseBoardGateway"]
