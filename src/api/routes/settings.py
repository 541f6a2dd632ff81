from __future__ import annotations

from fastapi import APIRouter

from api.dependencies import UserSettings
from api.middleware.auth import CurrentUser
from models.schemas.settings import SettingsResponse, UpdateSettingsRequest

router = APIRouter()


@router.get("")
async def get_settings(user: CurrentUser, settings: UserSettings) -> SettingsResponse:
    """Current user's theme and model selector."""
    return SettingsResponse(**await settings.get_user_settings(user.id))


@router.patch("")
async def update_settings(
    request: UpdateSettingsRequest,
    user: CurrentUser,
    settings: UserSettings,
) -> SettingsResponse:
    """Partially update settings. An empty body returns the current values."""
    if request.theme is None and request.ai_model is None:
        return SettingsResponse(**await settings.get_user_settings(user.id))
    updated = await settings.update_user_settings(user.id, theme=request.theme, ai_model=request.ai_model)
    return SettingsResponse(**updated)
