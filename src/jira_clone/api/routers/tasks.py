"""Task CRUD, batch upsert and the list view."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Query, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...listing import ListQuery, TaskListView, project
from ...listing.projection import SortDirection, SortKey
from ...repositories import TaskOrdering
from ...schemas import ProfileRead, TaskCreate, TaskRead, TaskUpdate, TaskUpsert
from ...services import ProfileService, TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])

OrderByQuery = Annotated[
    TaskOrdering,
    Query(description="Column to order by; the task id breaks ties."),
]
AscendingQuery = Annotated[bool, Query(description="Sort ascending when true.")]
StatusFilterQuery = Annotated[
    str,
    Query(alias="status", description="Exact status to keep, or 'all'."),
]
AssigneeFilterQuery = Annotated[
    str,
    Query(description="Profile id to keep, 'unassigned', or 'all'."),
]
SortQuery = Annotated[SortKey, Query(description="List view sort key.")]
DirectionQuery = Annotated[SortDirection, Query(description="List view sort direction.")]


@router.get("", response_model=list[TaskRead], summary="List every task")
async def list_tasks(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
    order_by: OrderByQuery = "order",
    ascending: AscendingQuery = True,
) -> list[TaskRead]:
    tasks = await TaskService(session).list_tasks(order_by=order_by, ascending=ascending)
    return [TaskRead.model_validate(task) for task in tasks]


@router.get("/view", response_model=TaskListView, summary="Filtered and sorted list view")
async def list_view(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
    status_filter: StatusFilterQuery = "all",
    assignee: AssigneeFilterQuery = "all",
    sort: SortQuery = "updated_at",
    direction: DirectionQuery = "desc",
) -> TaskListView:
    tasks = await TaskService(session).list_tasks()
    profiles = await ProfileService(session).list_profiles()
    query = ListQuery(status=status_filter, assignee=assignee, sort_key=sort, direction=direction)
    return project(
        [TaskRead.model_validate(task) for task in tasks],
        [ProfileRead.model_validate(profile) for profile in profiles],
        query,
    )


@router.get("/{task_id}", response_model=TaskRead, summary="Retrieve a task by id")
async def get_task(
    task_id: str,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    return TaskRead.model_validate(await TaskService(session).get_task(task_id))


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task at the end of its column",
)
async def create_task(
    payload: TaskCreate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    return TaskRead.model_validate(await TaskService(session).create_task(payload))


@router.patch("/{task_id}", response_model=TaskRead, summary="Update a task")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    return TaskRead.model_validate(await TaskService(session).update_task(task_id, payload))


@router.post("/upsert", response_model=list[TaskRead], summary="Insert or update tasks by id")
async def upsert_tasks(
    rows: Annotated[list[TaskUpsert], Body(min_length=1)],
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[TaskRead]:
    written = await TaskService(session).upsert_tasks(rows)
    return [TaskRead.model_validate(task) for task in written]
