from __future__ import annotations

from fastapi import APIRouter

from api.dependencies import Dispatcher
from api.middleware.auth import CurrentUser
from models.schemas.settings import ModelInfo

router = APIRouter()


@router.get("")
async def list_models(user: CurrentUser, dispatcher: Dispatcher) -> list[ModelInfo]:
    """Models selectable with the currently configured provider credentials."""
    return dispatcher.list_available_models()
