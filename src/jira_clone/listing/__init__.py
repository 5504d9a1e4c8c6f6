"""Task list view projection."""

from __future__ import annotations

from .projection import (
    ALL,
    UNASSIGNED,
    AssigneeOption,
    ListQuery,
    TaskListView,
    assignee_options,
    project,
    toggle_sort,
)

__all__ = [
    "ALL",
    "UNASSIGNED",
    "AssigneeOption",
    "ListQuery",
    "TaskListView",
    "assignee_options",
    "project",
    "toggle_sort",
]
