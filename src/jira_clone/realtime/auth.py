"""Authentication for websocket connections."""

from __future__ import annotations

from typing import Mapping

from starlette.websockets import WebSocket

from ..core.config import Settings
from ..db.session import SessionFactory
from ..errors import ApplicationError
from ..services import AuthService, SessionState

UNAUTHORIZED_CLOSE_CODE = 4401


class RealtimeAuthenticationError(RuntimeError):
    """Raised after a websocket has been closed for failing authentication."""


def _extract_authorization_token(headers: Mapping[str, str]) -> str | None:
    auth = headers.get("authorization") or headers.get("Authorization")
    if not auth:
        return None
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def authenticate_websocket(
    websocket: WebSocket,
    session_factory: SessionFactory,
    settings: Settings,
) -> SessionState:
    """Resolve the access token sent with ``websocket``.

    The token is read from the ``token`` query parameter or a bearer
    ``Authorization`` header. On failure the socket is closed with 4401.
    """

    token = websocket.query_params.get("token") or _extract_authorization_token(websocket.headers)
    if not token:
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
        raise RealtimeAuthenticationError("Missing access token.")
    try:
        async with session_factory() as session:
            return await AuthService(session, settings).read_session(token)
    except ApplicationError as exc:
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
        raise RealtimeAuthenticationError(exc.message) from exc


__all__ = [
    "UNAUTHORIZED_CLOSE_CODE",
    "RealtimeAuthenticationError",
    "authenticate_websocket",
]
