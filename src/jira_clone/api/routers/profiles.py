"""Read-only profile routes."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import CurrentUserDependency, DatabaseSessionDependency
from ...schemas import ProfileRead
from ...services import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=list[ProfileRead], summary="List profiles by name")
async def list_profiles(
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> list[ProfileRead]:
    profiles = await ProfileService(session).list_profiles()
    return [ProfileRead.model_validate(profile) for profile in profiles]


@router.get("/{profile_id}", response_model=ProfileRead, summary="Retrieve a profile")
async def get_profile(
    profile_id: str,
    session: DatabaseSessionDependency,
    current_user: CurrentUserDependency,
) -> ProfileRead:
    return ProfileRead.model_validate(await ProfileService(session).get_profile(profile_id))
