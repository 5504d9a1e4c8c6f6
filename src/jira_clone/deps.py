"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings, get_settings
from .core.context import bind_user_id
from .db.session import SessionFactory, get_session_factory
from .models import User
from .services import AuthService, SessionState

SettingsDependency = Annotated[Settings, Depends(get_settings)]
SessionFactoryDependency = Annotated[SessionFactory, Depends(get_session_factory)]

_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{get_settings().api_prefix}/auth/login")


async def get_db_session(session_factory: SessionFactoryDependency) -> AsyncIterator[AsyncSession]:
    """Yield a request-scoped database session."""

    async with session_factory() as session:
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]
AccessTokenDependency = Annotated[str, Depends(_oauth2_scheme)]


async def get_current_session(
    token: AccessTokenDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> SessionState:
    """Resolve the bearer token into the signed-in identity."""

    state = await AuthService(session, settings).read_session(token)
    bind_user_id(state.user.id)
    return state


CurrentSessionDependency = Annotated[SessionState, Depends(get_current_session)]


async def get_current_user(state: CurrentSessionDependency) -> User:
    return state.user


CurrentUserDependency = Annotated[User, Depends(get_current_user)]


__all__ = [
    "AccessTokenDependency",
    "CurrentSessionDependency",
    "CurrentUserDependency",
    "DatabaseSessionDependency",
    "SessionFactoryDependency",
    "SettingsDependency",
    "get_current_session",
    "get_current_user",
    "get_db_session",
]
