from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from jira_clone import models  # noqa: F401
from jira_clone.core.config import Settings, get_settings
from jira_clone.core.security import revoked_tokens
from jira_clone.db.session import SessionFactory, build_session_factory, get_session_factory
from jira_clone.main import create_app
from jira_clone.realtime.broker import ChangeBroker, broker

SignUp = Callable[..., Awaitable[dict]]


@pytest.fixture(autouse=True)
def _clear_revoked_tokens() -> Iterator[None]:
    revoked_tokens.clear()
    try:
        yield
    finally:
        revoked_tokens.clear()


@pytest_asyncio.fixture
async def change_broker() -> AsyncIterator[ChangeBroker]:
    await broker.reset()
    try:
        yield broker
    finally:
        await broker.reset()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-access-secret",
        jwt_refresh_secret_key="test-refresh-secret",
    )


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine: AsyncEngine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> SessionFactory:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory: SessionFactory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def app(
    settings: Settings,
    session_factory: SessionFactory,
    change_broker: ChangeBroker,
) -> AsyncIterator[FastAPI]:
    application = create_app(settings)
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def sign_up(client: AsyncClient) -> SignUp:
    """Register an account and return the auth response body."""

    async def _sign_up(
        email: str = "ada@example.com",
        full_name: str = "Ada Lovelace",
        password: str = "StrongPass123!",
    ) -> dict:
        response = await client.post(
            "/api/auth/signup",
            json={"email": email, "password": password, "full_name": full_name},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _sign_up


def bearer(auth: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth['tokens']['access_token']}"}
