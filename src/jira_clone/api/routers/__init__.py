"""Router registrations."""

from __future__ import annotations

from fastapi import APIRouter

from .auth import router as auth_router
from .board import router as board_router
from .health import router as health_router
from .profiles import router as profiles_router
from .tasks import router as tasks_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(tasks_router)
api_router.include_router(profiles_router)
api_router.include_router(board_router)

__all__ = [
    "api_router",
    "auth_router",
    "board_router",
    "health_router",
    "profiles_router",
    "tasks_router",
]
