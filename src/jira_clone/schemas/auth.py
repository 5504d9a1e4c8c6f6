"""Schemas describing authentication payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.security import TokenType
from .profile import ProfileRead
from .user import UserPublic


class SignupRequest(BaseModel):
    """Sign-up attributes; ``full_name`` seeds the new profile."""

    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


class AuthTokens(BaseModel):
    """Access and refresh tokens returned to clients."""

    access_token: str
    refresh_token: str
    token_type: str = Field(default="bearer", frozen=True)
    expires_in: int
    refresh_expires_in: int


class AuthResponse(BaseModel):
    """Issued tokens with the identity they belong to."""

    user: UserPublic
    profile: ProfileRead | None = None
    tokens: AuthTokens


class SessionRead(BaseModel):
    """The current session as seen by the bearer of an access token."""

    user: UserPublic
    profile: ProfileRead | None = None
    expires_at: datetime


class TokenPayload(BaseModel):
    """Validated JWT claims."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: datetime
    iat: datetime
    jti: str
    type: TokenType


__all__ = [
    "AuthResponse",
    "AuthTokens",
    "RefreshRequest",
    "SessionRead",
    "SignupRequest",
    "TokenPayload",
]
