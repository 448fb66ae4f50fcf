import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import UnauthenticatedError
from app.core.security import verify_token

security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> uuid.UUID:
    """Зависимость для получения идентификатора текущего пользователя"""
    if credentials is None:
        raise UnauthenticatedError("Not authorized, no token")

    payload = verify_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise UnauthenticatedError("Not authorized, token failed")

    try:
        return uuid.UUID(payload["sub"])
    except ValueError:
        raise UnauthenticatedError("Not authorized, token failed")
