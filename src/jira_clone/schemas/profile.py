"""Profile schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .common import UtcDatetime


class ProfileRead(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "6f1c1f7e-3f0a-4b7e-9a55-0d3c1f0b2a11",
                "full_name": "Ada Lovelace",
                "avatar_url": None,
                "created_at": "2024-01-01T12:00:00Z",
                "updated_at": "2024-01-01T12:00:00Z",
            }
        },
    )

    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    @property
    def display_name(self) -> str:
        return self.full_name or self.id


__all__ = ["ProfileRead"]
