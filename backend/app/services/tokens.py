from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import TYPE_CHECKING

import jwt

if TYPE_CHECKING:
    from app.core.config import Settings


ALGORITHM = "HS256"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenKind(StrEnum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenState(StrEnum):
    VALID = "VALID"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True)
class TokenCheck:
    state: TokenState
    subject: uuid.UUID | None = None
    email: str | None = None
    expires_at: datetime | None = None


class TokenService:
    """
    Issues and checks seller JWTs.

    Access and refresh tokens are signed with separate secrets and carry a `typ`
    claim, so one can never be replayed as the other. Expiry is evaluated against
    the injected clock.
    """

    def __init__(
        self,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=30),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise ValueError("JWT secrets must be configured")
        self._secrets = {TokenKind.ACCESS: access_secret, TokenKind.REFRESH: refresh_secret}
        self._ttls = {TokenKind.ACCESS: access_ttl, TokenKind.REFRESH: refresh_ttl}
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, *, clock: Callable[[], datetime] = utcnow) -> TokenService:
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=timedelta(seconds=settings.jwt_access_ttl_seconds),
            refresh_ttl=timedelta(seconds=settings.jwt_refresh_ttl_seconds),
            clock=clock,
        )

    def _encode(self, *, kind: TokenKind, subject: uuid.UUID, claims: dict) -> tuple[str, datetime]:
        now = self._clock()
        expires_at = now + self._ttls[kind]
        payload = {
            **claims,
            "sub": str(subject),
            "typ": kind.value,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=ALGORITHM), expires_at

    def issue(self, *, subject: uuid.UUID, email: str) -> TokenPair:
        access, access_exp = self._encode(kind=TokenKind.ACCESS, subject=subject, claims={"email": email})
        refresh, refresh_exp = self._encode(kind=TokenKind.REFRESH, subject=subject, claims={})
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    def inspect(self, token: str, *, kind: TokenKind) -> TokenCheck:
        try:
            # Expiry is checked below against the injected clock.
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "typ"]},
            )
        except jwt.PyJWTError:
            return TokenCheck(state=TokenState.INVALID)

        if payload.get("typ") != kind.value:
            return TokenCheck(state=TokenState.INVALID)
        try:
            subject = uuid.UUID(str(payload["sub"]))
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError):
            return TokenCheck(state=TokenState.INVALID)

        state = TokenState.VALID if self._clock() < expires_at else TokenState.EXPIRED
        return TokenCheck(state=state, subject=subject, email=payload.get("email"), expires_at=expires_at)

    def refresh(self, refresh_token: str, *, email: str) -> TokenPair:
        check = self.inspect(refresh_token, kind=TokenKind.REFRESH)
        if check.state == TokenState.EXPIRED:
            raise TokenError("Refresh token expired")
        if check.state != TokenState.VALID or check.subject is None:
            raise TokenError("Invalid refresh token")
        return self.issue(subject=check.subject, email=email)
