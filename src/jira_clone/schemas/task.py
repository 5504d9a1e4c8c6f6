"""Task-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import TaskStatus, TaskType
from .common import UtcDatetime

TASK_READ_EXAMPLE = {
    "id": "0b6f3d3e-8f1e-4d7a-a0d6-0c5b7a9e2f10",
    "title": "Fix login redirect",
    "description": "Users land on a blank page after signing in.",
    "type": TaskType.BUG.value,
    "status": TaskStatus.IN_PROGRESS.value,
    "assignee": "6f1c1f7e-3f0a-4b7e-9a55-0d3c1f0b2a11",
    "order": 0,
    "created_at": "2024-01-01T12:00:00Z",
    "updated_at": "2024-01-02T08:30:00Z",
}


def _reject_cleared(model: BaseModel, fields: tuple[str, ...]) -> None:
    cleared = [
        name for name in fields if name in model.model_fields_set and getattr(model, name) is None
    ]
    if cleared:
        raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}.")


class TaskCreate(BaseModel):
    """Payload for the create form; new tasks join the end of their column."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Fix login redirect",
                "description": "Users land on a blank page after signing in.",
                "type": TaskType.BUG.value,
                "status": TaskStatus.TODO.value,
            }
        }
    )

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None)
    type: TaskType = Field(default=TaskType.TASK)
    status: TaskStatus = Field(default=TaskStatus.TODO)
    assignee: str | None = Field(default=None)


class TaskUpdate(BaseModel):
    """Partial update from the detail view."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Fix login redirect on Safari",
                "status": TaskStatus.DONE.value,
            }
        }
    )

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None)
    type: TaskType | None = Field(default=None)
    status: TaskStatus | None = Field(default=None)
    assignee: str | None = Field(default=None)

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update.")
        _reject_cleared(self, ("title", "type", "status"))
        return self


class TaskUpsert(BaseModel):
    """One row of a batch upsert, keyed by identifier.

    Only the fields that are set are written. Rows for unknown identifiers are
    inserted and must carry a title.
    """

    id: str = Field(min_length=1)
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type: TaskType | None = None
    status: TaskStatus | None = None
    assignee: str | None = None
    order: int | None = Field(default=None, ge=0)
    updated_at: UtcDatetime | None = None

    @model_validator(mode="after")
    def _ensure_required_columns_not_cleared(self) -> "TaskUpsert":
        _reject_cleared(self, ("title", "type", "status", "order", "updated_at"))
        return self

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class TaskRead(BaseModel):
    """Public representation of a task."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TASK_READ_EXAMPLE},
    )

    id: str
    title: str
    description: str | None = None
    type: TaskType
    status: TaskStatus
    assignee: str | None = None
    order: int
    created_at: UtcDatetime
    updated_at: UtcDatetime


class TaskListRow(TaskRead):
    """A task as shown in the list view, with its assignee resolved."""

    assignee_name: str
    assignee_avatar_url: str | None = None


__all__ = [
    "TASK_READ_EXAMPLE",
    "TaskCreate",
    "TaskListRow",
    "TaskRead",
    "TaskUpdate",
    "TaskUpsert",
]
