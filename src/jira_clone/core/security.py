"""Password hashing and JWT helpers backing the identity gateway."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from threading import Lock
from typing import Any
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenType(str, Enum):
    """Kinds of JWT issued by the service."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(slots=True)
class GeneratedToken:
    """A signed token together with its expiry and identifier."""

    token: str
    expires_at: datetime
    jti: str

    def expires_in(self, now: datetime | None = None) -> int:
        current = now or datetime.now(timezone.utc)
        return max(int((self.expires_at - current).total_seconds()), 0)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _secret_for(token_type: TokenType, settings: Settings) -> str:
    if token_type is TokenType.ACCESS:
        return settings.jwt_secret_key
    return settings.jwt_refresh_secret_key


def _create_token(
    *,
    subject: str,
    settings: Settings,
    token_type: TokenType,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        minutes = (
            settings.access_token_expire_minutes
            if token_type is TokenType.ACCESS
            else settings.refresh_token_expire_minutes
        )
        expires_delta = timedelta(minutes=minutes)
    expire = now + expires_delta
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": now,
        "exp": expire,
        "type": token_type.value,
        "jti": uuid4().hex,
    }
    token = jwt.encode(payload, _secret_for(token_type, settings), algorithm=settings.jwt_algorithm)
    return GeneratedToken(token=token, expires_at=expire, jti=payload["jti"])


def create_access_token(
    *,
    subject: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Create a signed access token for ``subject``."""

    return _create_token(
        subject=subject,
        settings=settings,
        token_type=TokenType.ACCESS,
        expires_delta=expires_delta,
    )


def create_refresh_token(
    *,
    subject: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Create a signed refresh token for ``subject``."""

    return _create_token(
        subject=subject,
        settings=settings,
        token_type=TokenType.REFRESH,
        expires_delta=expires_delta,
    )


def decode_token(*, token: str, settings: Settings, token_type: TokenType) -> dict[str, Any]:
    """Decode ``token`` with the secret matching ``token_type``.

    Raises ``jose.JWTError`` (or its ``ExpiredSignatureError`` subclass) when
    the signature or claims do not validate.
    """

    return jwt.decode(
        token,
        _secret_for(token_type, settings),
        algorithms=[settings.jwt_algorithm],
    )


class RevokedTokens:
    """Identifiers of signed-out or rotated tokens.

    An entry is forgotten once the token it names has expired, since the
    signature check rejects the token from then on.
    """

    def __init__(self) -> None:
        self._expiry_by_jti: dict[str, datetime] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            self._forget_expired()
            return len(self._expiry_by_jti)

    def revoke(self, jti: str, expires_at: datetime) -> None:
        with self._lock:
            self._forget_expired()
            self._expiry_by_jti[jti] = expires_at

    def __contains__(self, jti: object) -> bool:
        with self._lock:
            self._forget_expired()
            return jti in self._expiry_by_jti

    def clear(self) -> None:
        with self._lock:
            self._expiry_by_jti.clear()

    def _forget_expired(self) -> None:
        now = datetime.now(timezone.utc)
        self._expiry_by_jti = {
            jti: expires_at for jti, expires_at in self._expiry_by_jti.items() if expires_at > now
        }


revoked_tokens = RevokedTokens()


__all__ = [
    "ExpiredSignatureError",
    "GeneratedToken",
    "JWTError",
    "RevokedTokens",
    "TokenType",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "get_password_hash",
    "revoked_tokens",
    "verify_password",
]
