"""Task table and its enumerations."""

from __future__ import annotations

from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, new_identifier


class TaskType(str, Enum):
    BUG = "Bug"
    FEATURE = "Feature"
    TASK = "Task"


class TaskStatus(str, Enum):
    """Board columns, in display order."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


def _enum_values(enum_type: type[Enum]) -> list[str]:
    return [member.value for member in enum_type]


class TaskBase(SQLModel, table=False):
    """Columns shared by the task table and its payloads."""

    title: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    description: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.Text(), nullable=True),
    )
    type: TaskType = Field(
        default=TaskType.TASK,
        sa_column=sa.Column(
            sa.Enum(
                TaskType,
                name="task_type",
                native_enum=False,
                validate_strings=True,
                values_callable=_enum_values,
            ),
            nullable=False,
            server_default=TaskType.TASK.value,
        ),
    )
    status: TaskStatus = Field(
        default=TaskStatus.TODO,
        sa_column=sa.Column(
            sa.Enum(
                TaskStatus,
                name="task_status",
                native_enum=False,
                validate_strings=True,
                values_callable=_enum_values,
            ),
            nullable=False,
            server_default=TaskStatus.TODO.value,
        ),
    )
    # Profile identifier; no foreign key, orphaned values are allowed.
    assignee: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.String(length=64), nullable=True),
    )
    order: int = Field(
        default=0,
        sa_column=sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )


class Task(TaskBase, TimestampMixin, table=True):
    """Persistent task row."""

    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_tasks_title_length"),
        sa.CheckConstraint('"order" >= 0', name="ck_tasks_order_non_negative"),
        sa.Index("ix_tasks_status_order", "status", "order"),
    )

    id: str = Field(
        default_factory=new_identifier,
        sa_column=sa.Column(sa.String(length=64), primary_key=True),
    )


__all__ = ["Task", "TaskBase", "TaskStatus", "TaskType"]
