"""Kanban board over REST."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from ...board import Move, apply_move, changed_rows_to_upserts, group_by_status
from ...board.session import BoardSnapshot
from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...schemas import BoardRead, MoveRequest, MoveResponse, ProfileRead, TaskRead
from ...services import ProfileService, TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/board", tags=["board"])


async def _load_board(service: TaskService, profiles: ProfileService) -> BoardSnapshot:
    tasks = [TaskRead.model_validate(task) for task in await service.list_tasks()]
    return BoardSnapshot(
        columns=group_by_status(tasks),
        profiles=[ProfileRead.model_validate(profile) for profile in await profiles.list_profiles()],
    )


@router.get("", response_model=BoardRead, summary="Tasks grouped into status columns")
async def read_board(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> BoardRead:
    snapshot = await _load_board(TaskService(session), ProfileService(session))
    return snapshot.to_schema()


@router.post("/moves", response_model=MoveResponse, summary="Apply a drag-and-drop move")
async def apply_board_move(
    payload: MoveRequest,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> MoveResponse:
    """Reorder against stored state and persist the changed rows in one batch."""

    service = TaskService(session)
    profiles = ProfileService(session)
    before = await _load_board(service, profiles)
    result = apply_move(before.columns, Move(**payload.model_dump()))
    if result is None:
        return MoveResponse(applied=False, board=before.to_schema())

    written = await service.upsert_tasks(changed_rows_to_upserts(result))
    logger.info(
        "Board move applied",
        extra={"task_id": payload.task_id, "changed": len(written)},
    )
    after = await _load_board(service, profiles)
    return MoveResponse(
        applied=True,
        changed=[TaskRead.model_validate(task) for task in written],
        board=after.to_schema(),
    )
