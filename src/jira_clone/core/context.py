"""Correlation values carried alongside a request or websocket session."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"
UNBOUND = "-"

request_id_var: ContextVar[str] = ContextVar("jira_clone_request_id", default=UNBOUND)
user_id_var: ContextVar[str] = ContextVar("jira_clone_user_id", default=UNBOUND)


def get_request_id() -> str:
    return request_id_var.get()


def get_user_id() -> str:
    return user_id_var.get()


def bind_user_id(user_id: str) -> Token[str]:
    """Record the signed-in identity for log lines emitted later in this context."""

    return user_id_var.set(user_id)


@contextmanager
def bound(*, request_id: str | None = None, user_id: str | None = None) -> Iterator[None]:
    """Bind the given values for the duration of the block.

    Values left as ``None`` keep whatever the enclosing context already holds.
    """

    resets: list[tuple[ContextVar[str], Token[str]]] = []
    if request_id is not None:
        resets.append((request_id_var, request_id_var.set(request_id)))
    if user_id is not None:
        resets.append((user_id_var, user_id_var.set(user_id)))
    try:
        yield
    finally:
        for var, token in reversed(resets):
            var.reset(token)


def current() -> dict[str, str]:
    return {"request_id": get_request_id(), "user_id": get_user_id()}


__all__ = [
    "REQUEST_ID_HEADER",
    "UNBOUND",
    "bind_user_id",
    "bound",
    "current",
    "get_request_id",
    "get_user_id",
    "request_id_var",
    "user_id_var",
]
