import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from app.config import get_settings

logger = logging.getLogger(__name__)


JWT_ALGORITHM = "HS256"

# bcrypt has a 72-byte limit (Blowfish). bcrypt 5.0+ raises ValueError for longer passwords.
# Truncate to match bcrypt 4.x behavior and ensure compatibility across versions.
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    """Encode password to bytes, truncating to 72 bytes for bcrypt compatibility."""
    b = password.encode("utf-8")
    return b[:BCRYPT_MAX_PASSWORD_BYTES] if len(b) > BCRYPT_MAX_PASSWORD_BYTES else b


def hash_password(password: str) -> str:
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash. Returns False on invalid hash format."""
    if not hashed_password or not isinstance(hashed_password, str):
        return False
    # bcrypt hashes are 60 chars, start with $2a$, $2b$, or $2y$
    if len(hashed_password) != 60 or not hashed_password.startswith(("$2a$", "$2b$", "$2y$")):
        return False
    try:
        return bcrypt.checkpw(
            _password_bytes(plain_password),
            hashed_password.encode("utf-8"),
        )
    except (ValueError, TypeError) as e:
        logger.warning("bcrypt.checkpw failed (hash may be incompatible): %s", e)
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a bearer token carrying ``sub`` only; 7 day expiry unless configured otherwise."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(days=settings.jwt_expire_days)
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(token, get_settings().jwt_secret_key, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
