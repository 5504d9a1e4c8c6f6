"""Identity records used by the session gateway."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, new_identifier


class UserBase(SQLModel, table=False):
    """Shared attributes for user models."""

    email: str = Field(
        max_length=320,
        sa_column=sa.Column(sa.String(length=320), nullable=False, unique=True),
    )
    is_active: bool = Field(
        default=True,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.true()),
    )


class User(UserBase, TimestampMixin, table=True):
    """Persistent identity row."""

    __tablename__ = "users"

    id: str = Field(
        default_factory=new_identifier,
        sa_column=sa.Column(sa.String(length=64), primary_key=True),
    )
    hashed_password: str = Field(
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )


__all__ = ["User", "UserBase"]
