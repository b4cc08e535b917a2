"""
Token handling for the PawMatch API.

Accounts, passwords and sessions belong to the identity service. This
module only issues and verifies the Bearer JWTs whose ``sub`` claim
carries the caller's opaque user id. Uses PyJWT.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt

from pawmatch.core.config import settings

ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(user_id: uuid.UUID) -> tuple[str, datetime]:
    """Create a short-lived access token.

    Returns:
        Tuple of (token_string, expiration_datetime).
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": expires_at,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is otherwise invalid.
    """
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
    )


def get_caller_id(token: str) -> uuid.UUID:
    """Return the user id carried by an access token.

    Raises:
        ValueError: If the token is expired, invalid, not an access token,
            or its subject is not a UUID.
    """
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired.")
    except jwt.InvalidTokenError:
        raise ValueError("Invalid token.")

    if payload.get("type") != "access":
        raise ValueError("Invalid token type.")

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise ValueError("Invalid token subject.")
