"""Database access helpers."""

from __future__ import annotations

from .session import (
    SessionFactory,
    build_session_factory,
    dispose_engine,
    get_engine,
    get_session_factory,
    init_db,
)

__all__ = [
    "SessionFactory",
    "build_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "init_db",
]
