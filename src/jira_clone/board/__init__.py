"""Kanban board: reorder engine, optimistic session and backend gateway."""

from __future__ import annotations

from .gateway import BoardGateway, DatabaseBoardGateway
from .reorder import (
    Columns,
    Move,
    ReorderResult,
    apply_move,
    changed_rows_to_upserts,
    group_by_status,
)
from .session import BoardSession, BoardSnapshot

__all__ = [
    "BoardGateway",
    "BoardSession",
    "BoardSnapshot",
    "Columns",
    "DatabaseBoardGateway",
    "Move",
    "ReorderResult",
    "apply_move",
    "changed_rows_to_upserts",
    "group_by_status",
]
