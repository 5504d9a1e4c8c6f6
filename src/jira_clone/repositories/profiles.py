"""Repository for the read-only ``profiles`` table."""

from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Profile
from .base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Profile)

    async def list_by_name(self) -> list[Profile]:
        """Return profiles ordered by full name, unnamed profiles last."""
        result = await self.session.execute(
            select(Profile).order_by(
                Profile.full_name.is_(None),
                Profile.full_name.asc(),
                Profile.id.asc(),
            )
        )
        return list(result.scalars().all())


__all__ = ["ProfileRepository"]
