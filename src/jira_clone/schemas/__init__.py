"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .auth import (
    AuthResponse,
    AuthTokens,
    RefreshRequest,
    SessionRead,
    SignupRequest,
    TokenPayload,
)
from .board import BoardColumnRead, BoardMessage, BoardRead, MoveRequest, MoveResponse
from .profile import ProfileRead
from .system import ErrorResponse, HealthCheckResponse, RootResponse
from .task import TaskCreate, TaskListRow, TaskRead, TaskUpdate, TaskUpsert
from .user import UserPublic

__all__ = [
    "AuthResponse",
    "AuthTokens",
    "BoardColumnRead",
    "BoardMessage",
    "BoardRead",
    "ErrorResponse",
    "HealthCheckResponse",
    "MoveRequest",
    "MoveResponse",
    "ProfileRead",
    "RefreshRequest",
    "RootResponse",
    "SessionRead",
    "SignupRequest",
    "TaskCreate",
    "TaskListRow",
    "TaskRead",
    "TaskUpdate",
    "TaskUpsert",
    "TokenPayload",
    "UserPublic",
]
