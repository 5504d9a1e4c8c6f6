"""Data-access layer."""

from __future__ import annotations

from .base import BaseRepository
from .profiles import ProfileRepository
from .tasks import TaskOrdering, TaskRepository
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "TaskOrdering",
    "TaskRepository",
    "UserRepository",
]
