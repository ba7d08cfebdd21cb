from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config


class TokenInvalid(Exception):
    """Token is malformed, carries a bad signature, or lacks required claims."""


class TokenExpired(Exception):
    """Token was valid once but its ``exp`` has passed."""


@dataclass(frozen=True)
class TokenClaims:
    subject: int
    role: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    subject: str,
    role: str,
    expires_minutes: int | None = None,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    expire = issued_at + timedelta(minutes=expire_minutes)
    payload = {"sub": subject, "role": role, "iat": issued_at, "exp": expire}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "iat", "exp"]},
    )


def issue(user, now: datetime | None = None) -> str:
    return create_access_token(subject=str(user.id), role=user.role, now=now)


def verify(token: str) -> TokenClaims:
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired(str(exc)) from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid(str(exc)) from exc

    try:
        subject = int(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise TokenInvalid("Token subject is not a user id") from exc

    return TokenClaims(
        subject=subject,
        role=str(payload.get("role", "")),
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
