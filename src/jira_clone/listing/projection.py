"""Filtering and sorting for the task list view.

Sorting puts missing values after present ones whatever the direction;
direction only flips the comparison between two present values. Strings
compare on a Unicode-normalised, case-folded key, then on the raw string.
"""

from __future__ import annotations

import unicodedata
from datetime import datetime
from enum import Enum
from functools import cmp_to_key
from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.common import as_utc
from ..schemas.profile import ProfileRead
from ..schemas.task import TaskListRow, TaskRead

SortKey = Literal["title", "type", "status", "assignee", "updated_at"]
SortDirection = Literal["asc", "desc"]

ALL = "all"
UNASSIGNED = "unassigned"
UNASSIGNED_LABEL = "Unassigned"


class ListQuery(BaseModel):
    """Filter and sort state of the list view."""

    model_config = ConfigDict(frozen=True)

    status: str = ALL
    assignee: str = ALL
    sort_key: SortKey = "updated_at"
    direction: SortDirection = "desc"


class AssigneeOption(BaseModel):
    id: str
    name: str


class TaskListView(BaseModel):
    """Rows matching a query. ``total`` counts every task before filtering."""

    rows: list[TaskListRow]
    total: int
    assignees: list[AssigneeOption] = Field(default_factory=list)
    query: ListQuery


def toggle_sort(query: ListQuery, key: SortKey) -> ListQuery:
    """Re-selecting the active key flips direction; a new key starts ascending."""

    if query.sort_key == key:
        direction: SortDirection = "desc" if query.direction == "asc" else "asc"
        return query.model_copy(update={"direction": direction})
    return query.model_copy(update={"sort_key": key, "direction": "asc"})


def _profiles_by_id(profiles: Iterable[ProfileRead]) -> dict[str, ProfileRead]:
    return {profile.id: profile for profile in profiles}


def assignee_name(task: TaskRead, profiles: Mapping[str, ProfileRead]) -> str | None:
    """Full name of the task's assignee, or ``None`` if unassigned or unknown."""

    if task.assignee is None:
        return None
    profile = profiles.get(task.assignee)
    if profile is None:
        return None
    return profile.full_name or None


def collation_key(value: str) -> tuple[str, str, str]:
    """Case- and accent-insensitive key; accents and case only break ties.

    This approximates locale-aware ordering for Latin scripts. Per-language
    tailoring, such as Swedish sorting "å" after "z", is not applied.
    """

    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), decomposed.casefold(), value


def _sort_value(task: TaskRead, key: SortKey, profiles: Mapping[str, ProfileRead]) -> Any:
    if key == "assignee":
        raw: Any = assignee_name(task, profiles)
    else:
        raw = getattr(task, key)
    if raw is None:
        return None
    if isinstance(raw, Enum):
        raw = raw.value
    if isinstance(raw, str):
        return collation_key(raw)
    if isinstance(raw, datetime):
        return as_utc(raw)
    return raw


def _compare(left: Any, right: Any, *, descending: bool) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    result = (left > right) - (left < right)
    return -result if descending else result


def _is_unassigned(task: TaskRead, profiles: Mapping[str, ProfileRead]) -> bool:
    return task.assignee is None or task.assignee not in profiles


def filter_tasks(
    tasks: Iterable[TaskRead],
    query: ListQuery,
    profiles: Mapping[str, ProfileRead],
) -> list[TaskRead]:
    """Apply the status and assignee filters, keeping relative order."""

    selected: list[TaskRead] = []
    for task in tasks:
        if query.status != ALL and task.status.value != query.status:
            continue
        if query.assignee == UNASSIGNED:
            if not _is_unassigned(task, profiles):
                continue
        elif query.assignee != ALL and task.assignee != query.assignee:
            continue
        selected.append(task)
    return selected


def sort_tasks(
    tasks: Iterable[TaskRead],
    query: ListQuery,
    profiles: Mapping[str, ProfileRead],
) -> list[TaskRead]:
    descending = query.direction == "desc"
    keyed = [(_sort_value(task, query.sort_key, profiles), task) for task in tasks]
    keyed.sort(key=cmp_to_key(lambda a, b: _compare(a[0], b[0], descending=descending)))
    return [task for _, task in keyed]


def assignee_options(
    tasks: Iterable[TaskRead],
    profiles: Iterable[ProfileRead],
) -> list[AssigneeOption]:
    """Distinct assignees of ``tasks`` keyed by profile id, sorted by name.

    Unassigned tasks, and tasks pointing at unknown profiles, share a single
    ``unassigned`` option.
    """

    by_id = _profiles_by_id(profiles)
    options: dict[str, AssigneeOption] = {}
    for task in tasks:
        profile = by_id.get(task.assignee) if task.assignee is not None else None
        if profile is None:
            options.setdefault(UNASSIGNED, AssigneeOption(id=UNASSIGNED, name=UNASSIGNED_LABEL))
        else:
            options.setdefault(profile.id, AssigneeOption(id=profile.id, name=profile.display_name))
    return sorted(options.values(), key=lambda option: (collation_key(option.name), option.id))


def project(
    tasks: Iterable[TaskRead],
    profiles: Iterable[ProfileRead],
    query: ListQuery | None = None,
) -> TaskListView:
    """Build the list view for ``query`` (default: newest first)."""

    query = query or ListQuery()
    all_tasks = list(tasks)
    all_profiles = list(profiles)
    by_id = _profiles_by_id(all_profiles)
    ordered = sort_tasks(filter_tasks(all_tasks, query, by_id), query, by_id)

    rows = []
    for task in ordered:
        profile = by_id.get(task.assignee) if task.assignee is not None else None
        rows.append(
            TaskListRow(
                **task.model_dump(),
                assignee_name=assignee_name(task, by_id) or UNASSIGNED_LABEL,
                assignee_avatar_url=profile.avatar_url if profile is not None else None,
            )
        )
    return TaskListView(
        rows=rows,
        total=len(all_tasks),
        assignees=assignee_options(all_tasks, all_profiles),
        query=query,
    )


__all__ = [
    "ALL",
    "UNASSIGNED",
    "UNASSIGNED_LABEL",
    "AssigneeOption",
    "ListQuery",
    "SortDirection",
    "SortKey",
    "TaskListView",
    "assignee_name",
    "assignee_options",
    "collation_key",
    "filter_tasks",
    "project",
    "sort_tasks",
    "toggle_sort",
]
