"""JWT verification for bearer tokens issued by the identity provider."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from app.config import settings
from app.core.exceptions import InvalidTokenError
from app.domain.actors import Actor

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    *,
    name: str,
    is_admin: bool = False,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Tokens are normally minted by the identity provider; this is used by
    local tooling and tests.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    to_encode: dict[str, Any] = {
        "sub": subject,
        "name": name,
        "is_admin": is_admin,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT access token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise InvalidTokenError(str(e)) from e

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning("Token type mismatch", extra={"expected": "access", "got": token_type})
        raise InvalidTokenError(f"Expected access token, got {token_type}")

    if payload.get("sub") is None:
        logger.warning("Token missing subject")
        raise InvalidTokenError("Token missing subject")

    return payload


def actor_from_token(token: str) -> Actor:
    """Build the requesting `Actor` from a verified token's claims."""
    payload = decode_token(token)
    subject = str(payload["sub"])
    return Actor(
        id=subject,
        name=str(payload.get("name") or subject),
        is_admin=bool(payload.get("is_admin", False)),
    )
