"""Verification of identity provider access tokens."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from app.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create an access token shaped like the identity provider's.

    Used by tests and local tooling; production tokens come from the identity
    provider itself.

    Args:
        data: Payload data. Must include ``sub`` (user id) and usually ``email``.
        expires_delta: Custom expiration duration. Defaults to one hour.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))
    to_encode.setdefault("aud", settings.auth_jwt_audience)
    to_encode.setdefault("role", "authenticated")
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify an access token.

    Args:
        token: Encoded JWT string.

    Returns:
        Decoded payload dictionary.

    Raises:
        jose.JWTError: If the token is invalid, expired, malformed, or issued
            for another audience.
    """
    return jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.auth_jwt_algorithm],
        audience=settings.auth_jwt_audience,
    )
