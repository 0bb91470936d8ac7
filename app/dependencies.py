from __future__ import annotations

import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.jwt_handler import verify_token
from .config import get_settings
from .database import get_db
from .exceptions import AuthError
from .models.user import User

limiter = Limiter(key_func=get_remote_address, enabled=get_settings().rate_limit_enabled)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthError("Missing authorization header")

    payload = verify_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise AuthError("Invalid token")

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise AuthError("Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthError("User not found")

    return user
