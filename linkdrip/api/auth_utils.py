"""Password hashing and bearer tokens for the API."""

import os
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import UUID

from jose import jwt
from passlib.context import CryptContext

SECRET_KEY = os.environ.get("LINKDRIP_SECRET_KEY", "dev-secret-unsafe")
ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_MINUTES = 60 * 24

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    result: bool = pwd_context.verify(plain_password, hashed_password)
    return result


def get_password_hash(password: str) -> str:
    result: str = pwd_context.hash(password)
    return result


def create_access_token(
    user_id: UUID,
    ttl_minutes: int = DEFAULT_TOKEN_TTL_MINUTES,
    now_utc: datetime | None = None,
) -> str:
    """
    Issue a signed token whose subject is the user id.

    Args:
        user_id: The authenticated user
        ttl_minutes: Lifetime of the token (rules: auth.token_ttl_minutes)
        now_utc: Issue time, for deterministic tests. Defaults to datetime.now(UTC).
    """
    issued = now_utc if now_utc is not None else datetime.now(UTC)
    claims = {
        "sub": str(user_id),
        "iat": issued,
        "exp": issued + timedelta(minutes=ttl_minutes),
    }
    encoded: str = jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)
    return encoded


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Claims of a valid token, or None when it is malformed, forged or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return cast(dict[str, Any], payload)
    except jwt.JWTError:
        return None
