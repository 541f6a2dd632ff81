from __future__ import annotations

from typing import Annotated

import asyncpg

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies import get_db
from api.middleware.exception_handlers import AuthenticationError
from api.middleware.request_context import update_request_context
from api.services.auth_service import AuthService
from models.error_models import ErrorCode
from models.schemas.auth import UserInfo

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[asyncpg.Pool, Depends(get_db)],
) -> UserInfo:
    """Authenticate incoming REST requests from the bearer access token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    auth = AuthService(db)
    try:
        payload = auth.decode_access_token(credentials.credentials)
    except ValueError as exc:
        raise AuthenticationError("Invalid token", code=ErrorCode.AUTH_INVALID_TOKEN) from exc

    user = await auth.get_user_by_id(int(payload["sub"]))
    if not user:
        raise AuthenticationError("User not found", code=ErrorCode.AUTH_USER_NOT_FOUND)

    update_request_context(user_id=user["id"])
    return UserInfo(**auth.user_payload(user))


CurrentUser = Annotated[UserInfo, Depends(get_current_user)]
