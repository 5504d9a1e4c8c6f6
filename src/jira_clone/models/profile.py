"""Public profile attached to every identity."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin


class ProfileBase(SQLModel, table=False):
    full_name: str | None = Field(
        default=None,
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=True),
    )
    avatar_url: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.Text(), nullable=True),
    )


class Profile(ProfileBase, TimestampMixin, table=True):
    """Persistent profile row; its id equals the owning user's id."""

    __tablename__ = "profiles"
    __table_args__ = (sa.Index("ix_profiles_full_name", "full_name"),)

    id: str = Field(sa_column=sa.Column(sa.String(length=64), primary_key=True))


__all__ = ["Profile", "ProfileBase"]
