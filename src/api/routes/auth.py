from __future__ import annotations

from fastapi import APIRouter, status

from api.dependencies import DB
from api.middleware.auth import CurrentUser
from api.middleware.exception_handlers import AuthenticationError, ResourceConflictError
from api.services.auth_service import AuthService
from models.error_models import ErrorCode
from models.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserInfo

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: DB) -> TokenResponse:
    """Create an account and sign it in."""
    auth = AuthService(db)
    try:
        result = await auth.register(body.username, body.email, body.password, body.name)
    except LookupError as exc:
        raise ResourceConflictError(str(exc)) from exc
    return TokenResponse(**result)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: DB) -> TokenResponse:
    """Exchange username and password for tokens."""
    auth = AuthService(db)
    try:
        result = await auth.login(body.username, body.password)
    except ValueError as exc:
        raise AuthenticationError(
            message=str(exc),
            code=ErrorCode.AUTH_INVALID_CREDENTIALS,
        ) from exc
    return TokenResponse(**result)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: DB) -> TokenResponse:
    """Rotate tokens using a refresh token."""
    auth = AuthService(db)
    try:
        result = await auth.refresh(body.refresh_token)
    except ValueError as exc:
        raise AuthenticationError(
            message=str(exc),
            code=ErrorCode.AUTH_EXPIRED_TOKEN,
        ) from exc
    return TokenResponse(**result)


@router.get("/me")
async def me(user: CurrentUser) -> UserInfo:
    """Get current user (requires valid access token)."""
    return user
