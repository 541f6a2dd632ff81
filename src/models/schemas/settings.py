"""
User settings and model catalog API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.constants import VALID_THEMES


class SettingsResponse(BaseModel):
    """Per-user preferences."""

    model_config = ConfigDict(json_schema_extra={"example": {"theme": "system", "ai_model": "openai:gpt-3.5-turbo"}})

    theme: str = Field(..., description="UI theme: light, dark or system")
    ai_model: str = Field(..., description="Model selector in provider:model form")


class UpdateSettingsRequest(BaseModel):
    """Partial settings update. Omitted fields are left unchanged."""

    theme: str | None = Field(default=None, description="UI theme: light, dark or system")
    ai_model: str | None = Field(default=None, max_length=100, description="Model selector")

    @field_validator("theme")
    @classmethod
    def validate_theme(cls, v: str | None) -> str | None:
        if v is not None and v not in VALID_THEMES:
            raise ValueError(f"theme must be one of {sorted(VALID_THEMES)}")
        return v

    @field_validator("ai_model")
    @classmethod
    def validate_ai_model(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("ai_model must not be empty")
        provider, sep, model = v.partition(":")
        if sep and (not provider or not model):
            raise ValueError("ai_model must look like 'provider:model' or a bare model name")
        return v


class ModelInfo(BaseModel):
    """One selectable model."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "openai:gpt-4o",
                "name": "GPT-4o (OpenAI)",
                "provider": "openai",
            }
        }
    )

    id: str = Field(..., description="Model selector passed back as ai_model")
    name: str = Field(..., description="Human-readable name")
    provider: str = Field(..., description="Provider identifier")