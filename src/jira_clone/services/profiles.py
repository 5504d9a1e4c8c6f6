"""Read access to profiles."""

from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import NotFoundError
from ..models import Profile
from ..repositories import ProfileRepository


class ProfileService:
    def __init__(self, session: AsyncSession) -> None:
        self._repository = ProfileRepository(session)

    async def list_profiles(self) -> list[Profile]:
        return await self._repository.list_by_name()

    async def get_profile(self, profile_id: str) -> Profile:
        profile = await self._repository.get(profile_id)
        if profile is None:
            raise NotFoundError(
                f"Profile {profile_id} does not exist.",
                details={"profile_id": profile_id},
            )
        return profile


__all__ = ["ProfileService"]
