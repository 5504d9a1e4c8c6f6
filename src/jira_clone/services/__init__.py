"""Service layer."""

from __future__ import annotations

from .auth import AuthService, SessionState, TokenPair
from .profiles import ProfileService
from .tasks import TaskService, task_record

__all__ = [
    "AuthService",
    "ProfileService",
    "SessionState",
    "TaskService",
    "TokenPair",
    "task_record",
]
