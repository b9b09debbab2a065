"""FastAPI authentication dependencies for route protection."""

import logging
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.auth.jwt import decode_token
from app.billing.errors import Unauthorized

logger = logging.getLogger(__name__)

# Never auto-error: a missing token must surface as ``Unauthorized`` (HTTP 400)
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as asserted by the identity provider."""

    user_id: str
    email: str | None = None


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> Identity:
    """Validate the Bearer token and return the caller's identity.

    Raises:
        Unauthorized: If the token is missing, invalid, expired, or has no subject.
    """
    if credentials is None:
        logger.warning("Authentication error: no bearer token")
        raise Unauthorized()

    try:
        payload = decode_token(credentials.credentials)
    except JWTError as e:
        logger.warning("Authentication error: %s", e)
        raise Unauthorized() from None

    sub: str | None = payload.get("sub")
    if not sub:
        raise Unauthorized()

    identity = Identity(user_id=str(sub), email=payload.get("email"))
    logger.info("User authenticated: %s", identity.email or identity.user_id)
    return identity
