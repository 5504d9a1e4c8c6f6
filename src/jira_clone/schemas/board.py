"""Kanban board payloads."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .profile import ProfileRead
from .task import TaskRead


class MoveRequest(BaseModel):
    """A drag-and-drop result. A missing destination means the drop was cancelled."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "task_id": "0b6f3d3e-8f1e-4d7a-a0d6-0c5b7a9e2f10",
                "source_status": "To Do",
                "source_index": 0,
                "destination_status": "In Progress",
                "destination_index": 1,
            }
        }
    )

    task_id: str = Field(min_length=1)
    source_status: str
    source_index: int = Field(ge=0)
    destination_status: str | None = None
    destination_index: int | None = Field(default=None, ge=0)


class BoardColumnRead(BaseModel):
    status: str
    tasks: list[TaskRead] = Field(default_factory=list)


class BoardRead(BaseModel):
    """Columns in display order plus the profiles needed to render cards."""

    columns: list[BoardColumnRead]
    profiles: list[ProfileRead] = Field(default_factory=list)
    revision: int = 0
    error: str | None = None


class MoveResponse(BaseModel):
    """Outcome of a move: the rows written and the board afterwards."""

    applied: bool
    changed: list[TaskRead] = Field(default_factory=list)
    board: BoardRead


class BoardMessage(BaseModel):
    """A message sent by a live board client."""

    action: Literal["move", "refresh"]
    payload: dict[str, Any] = Field(default_factory=dict)


__all__ = ["BoardColumnRead", "BoardMessage", "BoardRead", "MoveRequest", "MoveResponse"]
