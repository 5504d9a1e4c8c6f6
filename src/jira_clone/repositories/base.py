"""Base repository implementation supporting asynchronous SQLModel sessions."""

from __future__ import annotations

from typing import Generic, Sequence, TypeVar

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Persistence helpers shared by every table keyed on a string identifier."""

    def __init__(self, session: AsyncSession, model_type: type[ModelType]) -> None:
        self._session = session
        self._model_type = model_type

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def get(self, entity_id: str) -> ModelType | None:
        return await self._session.get(self._model_type, entity_id)

    async def list_by_ids(self, ids: Sequence[str]) -> list[ModelType]:
        """Fetch every row whose identifier is in ``ids``; unknown ids are skipped."""
        if not ids:
            return []
        column = getattr(self._model_type, "id")
        result = await self._session.execute(select(self._model_type).where(column.in_(list(ids))))
        return list(result.scalars().all())

    async def add(self, instance: ModelType) -> ModelType:
        """Add and flush a new row."""
        self._session.add(instance)
        await self._session.flush()
        return instance

    async def refresh(self, instance: ModelType) -> ModelType:
        await self._session.refresh(instance)
        return instance


__all__ = ["BaseRepository", "ModelType"]
