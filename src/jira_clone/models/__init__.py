"""SQLModel tables."""

from __future__ import annotations

from .common import TimestampMixin, new_identifier, utcnow
from .profile import Profile, ProfileBase
from .task import Task, TaskBase, TaskStatus, TaskType
from .user import User, UserBase

__all__ = [
    "Profile",
    "ProfileBase",
    "Task",
    "TaskBase",
    "TaskStatus",
    "TaskType",
    "TimestampMixin",
    "User",
    "UserBase",
    "new_identifier",
    "utcnow",
]
