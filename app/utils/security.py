"""
Security utilities for account authentication.

Bcrypt password hashing, JWT issuing/verification via python-jose, and
the random tokens used for password recovery. Secrets and lifetimes come
from the application settings.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.config import get_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Password helpers
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash stored for the account.
        return False


def generate_reset_token() -> str:
    """Return a 64-character hex token for password recovery."""
    return secrets.token_hex(32)


# ---------------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------------


def create_access_token(data: dict[str, Any]) -> str:
    """Create a signed JWT access token.

    The payload is a copy of *data* plus ``exp`` and ``iat`` claims; the
    lifetime is ``JWT_EXPIRATION_MINUTES``. Callers set ``sub`` to the
    account primary key.

    Example::

        token = create_access_token({"sub": str(user.id), "role": user.role})
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    payload = data.copy()
    payload["exp"] = issued_at + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    payload["iat"] = issued_at

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT access token.

    Raises:
        ValueError: If the token is invalid, expired, or cannot be decoded.
            FastAPI dependencies map this to HTTP 401.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        logger.debug("JWT verification failed: %s", exc)
        raise ValueError("Token inválido o expirado") from exc
