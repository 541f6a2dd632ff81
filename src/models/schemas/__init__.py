"""
Centralized API schemas for Chatterbox.

Request/response models organized by domain, with OpenAPI examples.
"""

from models.error_models import ErrorDetail, ErrorResponse
from models.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserInfo,
)
from models.schemas.conversations import (
    ConversationListResponse,
    ConversationResponse,
    ConversationWithMessagesResponse,
    CreateConversationRequest,
    DeleteConversationResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    UpdateConversationRequest,
)
from models.schemas.health import (
    DatabaseHealth,
    HealthResponse,
    LivenessResponse,
    ProvidersHealth,
    ReadinessResponse,
)
from models.schemas.settings import (
    ModelInfo,
    SettingsResponse,
    UpdateSettingsRequest,
)

__all__ = [
    "ConversationListResponse",
    "ConversationResponse",
    "ConversationWithMessagesResponse",
    "CreateConversationRequest",
    "DatabaseHealth",
    "DeleteConversationResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "LivenessResponse",
    "LoginRequest",
    "MessageResponse",
    "ModelInfo",
    "ProvidersHealth",
    "ReadinessResponse",
    "RefreshRequest",
    "RegisterRequest",
    "SendMessageRequest",
    "SendMessageResponse",
    "SettingsResponse",
    "TokenResponse",
    "UpdateConversationRequest",
    "UpdateSettingsRequest",
    "UserInfo",
]
