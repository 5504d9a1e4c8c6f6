"""Identity gateway: sign-up, sign-in, sign-out and session lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import status
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..core.security import (
    ExpiredSignatureError,
    GeneratedToken,
    JWTError,
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    revoked_tokens,
    verify_password,
)
from ..errors import ApplicationError, AuthenticationError, ValidationError
from ..models import Profile, User
from ..realtime.broker import ChangeBroker, ChangeEvent, broker
from ..repositories import ProfileRepository, UserRepository
from ..schemas.auth import TokenPayload
from ..schemas.profile import ProfileRead

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenPair:
    """Access and refresh tokens issued together."""

    access: GeneratedToken
    refresh: GeneratedToken


@dataclass(slots=True)
class SessionState:
    """An authenticated identity resolved from an access token."""

    user: User
    profile: Profile | None
    claims: TokenPayload


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        change_broker: ChangeBroker | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._users = UserRepository(session)
        self._profiles = ProfileRepository(session)
        self._broker = change_broker or broker

    async def sign_up(
        self,
        *,
        email: str,
        password: str,
        full_name: str | None,
    ) -> tuple[User, Profile, TokenPair]:
        """Register an identity and create its profile from ``full_name``."""

        name = (full_name or "").strip()
        if not name:
            raise ValidationError("Full name is required for sign up.")
        normalized_email = email.strip().lower()
        if await self._users.get_by_email(normalized_email) is not None:
            raise ApplicationError("Email is already registered.", code="email_taken")

        user = User(email=normalized_email, hashed_password=get_password_hash(password))
        await self._users.add(user)
        profile = Profile(id=user.id, full_name=name)
        await self._profiles.add(profile)
        await self._session.commit()
        logger.info("User signed up", extra={"user_id": user.id})

        await self._broker.publish(
            ChangeEvent(
                table="profiles",
                type="INSERT",
                record=ProfileRead.model_validate(profile).model_dump(mode="json"),
            )
        )
        return user, profile, self.issue_tokens(user)

    async def sign_in(self, *, email: str, password: str) -> tuple[User, TokenPair]:
        user = await self._users.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid email or password.")
        self._ensure_active(user)
        logger.info("User signed in", extra={"user_id": user.id})
        return user, self.issue_tokens(user)

    async def sign_out(self, access_token: str) -> None:
        """Revoke ``access_token`` until it would have expired anyway."""

        claims = self.decode(access_token, TokenType.ACCESS)
        revoked_tokens.revoke(claims.jti, _aware(claims))
        logger.info("User signed out", extra={"user_id": claims.sub})

    async def read_session(self, access_token: str) -> SessionState:
        claims = self.decode(access_token, TokenType.ACCESS)
        user = await self._resolve_user(claims)
        profile = await self._profiles.get(user.id)
        return SessionState(user=user, profile=profile, claims=claims)

    async def refresh(self, refresh_token: str) -> tuple[User, TokenPair]:
        """Exchange a refresh token for a new pair; the old one is revoked."""

        claims = self.decode(refresh_token, TokenType.REFRESH)
        user = await self._resolve_user(claims)
        revoked_tokens.revoke(claims.jti, _aware(claims))
        return user, self.issue_tokens(user)

    def issue_tokens(self, user: User) -> TokenPair:
        return TokenPair(
            access=create_access_token(subject=user.id, settings=self._settings),
            refresh=create_refresh_token(subject=user.id, settings=self._settings),
        )

    def decode(self, token: str, token_type: TokenType) -> TokenPayload:
        """Validate ``token`` and return its claims.

        Raises :class:`AuthenticationError` for expired, malformed, revoked or
        wrongly typed tokens.
        """

        label = "Access" if token_type is TokenType.ACCESS else "Refresh"
        try:
            raw = decode_token(token=token, settings=self._settings, token_type=token_type)
        except ExpiredSignatureError as exc:
            raise AuthenticationError(f"{label} token has expired.") from exc
        except JWTError as exc:
            raise AuthenticationError(f"Invalid {label.lower()} token.") from exc

        try:
            claims = TokenPayload.model_validate(raw)
        except ValueError as exc:
            raise AuthenticationError(f"Invalid {label.lower()} token.") from exc
        if claims.type is not token_type:
            raise AuthenticationError("Invalid token type.")
        if claims.jti in revoked_tokens:
            raise AuthenticationError(f"{label} token has been revoked.")
        return claims

    async def _resolve_user(self, claims: TokenPayload) -> User:
        user = await self._users.get(claims.sub)
        if user is None:
            raise AuthenticationError("User no longer exists.")
        self._ensure_active(user)
        return user

    @staticmethod
    def _ensure_active(user: User) -> None:
        if not user.is_active:
            raise ApplicationError(
                "User account is inactive.",
                code="forbidden",
                status_code=status.HTTP_403_FORBIDDEN,
            )


def _aware(claims: TokenPayload) -> datetime:
    expires_at = claims.exp
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


__all__ = ["AuthService", "SessionState", "TokenPair"]
