"""Password hashing and access token helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from fastapi.concurrency import run_in_threadpool

from .config import Settings
from .exceptions import AuthenticationError

JWT_ALGORITHM = "HS256"


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a plain text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password_async(password: str, rounds: int = 12) -> str:
    """Hash a password on the threadpool; bcrypt holds the CPU for the whole call."""
    return await run_in_threadpool(hash_password, password, rounds)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(verify_password, password, password_hash)


def create_access_token(user_id: int, role: str, settings: Settings) -> str:
    """
    Issue a signed access token.

    Args:
        user_id: Subject of the token
        role: Role claim copied from the user row
        settings: Provides the secret and lifetime

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises:
        AuthenticationError: If the token is expired or invalid
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired. Please login again.") from e
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid token.") from e

    if not payload.get("sub"):
        raise AuthenticationError("Invalid token.")
    return payload
