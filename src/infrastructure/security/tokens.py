# src/infrastructure/security/tokens.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from src.config import JWT_ALGORITHM, jwt_secret

logger = logging.getLogger(__name__)


def create_access_token(user_id: str, role: str, expires_delta: timedelta | None = None) -> str:
    secret = jwt_secret()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")

    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=30))
    claims = {"id": user_id, "role": role, "exp": expire}
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Returns the claims, or None if the token is invalid or expired."""
    secret = jwt_secret()
    if not secret:
        logger.error("JWT_SECRET is not configured; rejecting token")
        return None
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.warning("JWT verification failed: %s", exc)
        return None
