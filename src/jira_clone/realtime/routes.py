"""Websocket endpoints: raw change streams and the live board."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from fastapi import APIRouter, status
from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..board import BoardSession, BoardSnapshot, DatabaseBoardGateway, Move
from ..deps import SessionFactoryDependency, SettingsDependency
from ..core.context import bind_user_id
from ..errors import ApplicationError
from ..schemas.board import BoardMessage, MoveRequest
from .auth import RealtimeAuthenticationError, authenticate_websocket
from .broker import TABLES, ConnectionLimitExceeded, broker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def _error(reason: str, detail: Any) -> dict[str, Any]:
    return {"kind": "error", "reason": reason, "detail": detail}


def _board_message(snapshot: BoardSnapshot) -> dict[str, Any]:
    return {"kind": "board", "board": snapshot.to_schema().model_dump(mode="json")}


@router.websocket("/ws/changes/{table}")
async def change_stream(
    websocket: WebSocket,
    table: str,
    settings: SettingsDependency,
    session_factory: SessionFactoryDependency,
) -> None:
    """Stream every committed change to ``table`` as JSON."""

    try:
        state = await authenticate_websocket(websocket, session_factory, settings)
    except RealtimeAuthenticationError:
        return
    bind_user_id(state.user.id)
    if table not in TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        await broker.connect(table, websocket, settings)
    except ConnectionLimitExceeded:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await broker.disconnect(table, websocket)


@router.websocket("/ws/board")
async def live_board(
    websocket: WebSocket,
    settings: SettingsDependency,
    session_factory: SessionFactoryDependency,
) -> None:
    """Serve one board session: snapshots out, moves in."""

    try:
        state = await authenticate_websocket(websocket, session_factory, settings)
    except RealtimeAuthenticationError:
        return
    bind_user_id(state.user.id)
    await websocket.accept()

    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    board = BoardSession(
        DatabaseBoardGateway(session_factory, broker),
        on_change=lambda snapshot: outbox.put_nowait(_board_message(snapshot)),
    )

    async def _pump() -> None:
        while True:
            await websocket.send_json(await outbox.get())

    sender = asyncio.create_task(_pump())
    try:
        await board.attach()
        await board.load()
        while True:
            try:
                raw = await websocket.receive_json()
            except json.JSONDecodeError:
                outbox.put_nowait(_error("invalid_json", "Messages must be valid JSON objects."))
                continue

            try:
                message = BoardMessage.model_validate(raw)
                if message.action == "refresh":
                    await board.refresh()
                    continue
                request = MoveRequest.model_validate(message.payload)
            except ValidationError as exc:
                outbox.put_nowait(_error("validation_error", exc.errors(include_url=False)))
                continue

            try:
                await board.move(Move(**request.model_dump()))
            except ApplicationError as exc:
                outbox.put_nowait(_error(exc.code, exc.message))
    except WebSocketDisconnect:
        logger.debug("Board client disconnected")
    finally:
        await board.close()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender


__all__ = ["router"]
