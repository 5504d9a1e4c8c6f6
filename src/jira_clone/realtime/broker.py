"""In-process change notifications for the ``tasks`` and ``profiles`` tables."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Literal
from uuid import uuid4

from pydantic import BaseModel, Field
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ..core.config import Settings

logger = logging.getLogger(__name__)

TableName = Literal["tasks", "profiles"]
ChangeType = Literal["INSERT", "UPDATE", "DELETE"]

TABLES: tuple[TableName, ...] = ("tasks", "profiles")


class ConnectionLimitExceeded(RuntimeError):
    """Raised when the websocket connection pool is exhausted."""


class ChangeEvent(BaseModel):
    """One committed row change."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    table: TableName
    type: ChangeType
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]


class Subscription:
    """Handle returned by :meth:`ChangeBroker.subscribe`."""

    def __init__(self, broker: "ChangeBroker", table: TableName, callback: ChangeCallback) -> None:
        self._broker = broker
        self.table = table
        self.callback = callback
        self.active = True

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        await self._broker._remove(self)


class ChangeBroker:
    """Fans committed changes out to in-process callbacks and websocket clients."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        self._sockets: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    @staticmethod
    def _check_table(table: str) -> TableName:
        if table not in TABLES:
            raise ValueError(f"Unknown table {table!r}; expected one of {', '.join(TABLES)}.")
        return table  # type: ignore[return-value]

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """Invoke ``callback`` for every change committed to ``table``."""

        subscription = Subscription(self, self._check_table(table), callback)
        async with self._lock:
            self._subscriptions[subscription.table].append(subscription)
        return subscription

    async def _remove(self, subscription: Subscription) -> None:
        async with self._lock:
            subscribers = self._subscriptions.get(subscription.table)
            if subscribers and subscription in subscribers:
                subscribers.remove(subscription)

    async def connect(self, table: str, websocket: WebSocket, settings: Settings) -> int:
        """Accept ``websocket`` as a listener on ``table``."""

        checked = self._check_table(table)
        async with self._lock:
            total = sum(len(sockets) for sockets in self._sockets.values())
            if total >= settings.websocket_max_connections:
                raise ConnectionLimitExceeded("Websocket connection limit reached.")
            self._sockets[checked].add(websocket)
            active = len(self._sockets[checked])
        await websocket.accept()
        return active

    async def disconnect(self, table: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._sockets.get(table)
            if sockets:
                sockets.discard(websocket)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver ``event`` to every subscriber of its table."""

        async with self._lock:
            subscribers = list(self._subscriptions.get(event.table, ()))
            sockets = list(self._sockets.get(event.table, ()))

        for subscription in subscribers:
            if not subscription.active:
                continue
            try:
                result = subscription.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Change subscriber failed",
                    extra={"table": event.table, "event_id": event.id},
                )

        if not sockets:
            return
        payload = event.model_dump(mode="json")
        stale: list[WebSocket] = []
        for websocket in sockets:
            if websocket.application_state != WebSocketState.CONNECTED:
                stale.append(websocket)
                continue
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                stale.append(websocket)

        if stale:
            async with self._lock:
                for websocket in stale:
                    self._sockets[event.table].discard(websocket)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, ()))

    async def reset(self) -> None:
        """Forget every subscription and socket (used by tests)."""

        async with self._lock:
            for subscribers in self._subscriptions.values():
                for subscription in subscribers:
                    subscription.active = False
            self._subscriptions.clear()
            self._sockets.clear()


broker = ChangeBroker()


__all__ = [
    "TABLES",
    "ChangeBroker",
    "ChangeCallback",
    "ChangeEvent",
    "ChangeType",
    "ConnectionLimitExceeded",
    "Subscription",
    "TableName",
    "broker",
]
