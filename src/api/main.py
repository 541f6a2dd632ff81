from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.exception_handlers import register_exception_handlers
from api.middleware.request_context import RequestContextMiddleware
from api.routes import auth, conversations, health, models, settings as settings_routes
from core.constants import get_settings
from core.dispatcher import CompletionDispatcher
from integrations.providers import build_providers
from utils.db_utils import check_pool_health, create_database_pool, graceful_pool_close, with_retry
from utils.logger import configure_uvicorn_logging, logger

# Settings are loaded via Pydantic Settings (.env + environment)
settings = get_settings()

# Configure uvicorn logging at module level to ensure workers use it
configure_uvicorn_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    # Postgres may still be booting when the API container starts
    connect = with_retry(max_attempts=5, base_delay=1.0)(create_database_pool)
    app.state.db_pool = await connect(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )

    health_status = await check_pool_health(app.state.db_pool)
    if not health_status["healthy"]:
        logger.error("Database health check failed during startup")
        raise RuntimeError("Database connection failed")
    logger.info(f"Database pool healthy: {health_status}")

    # One dispatcher shared by every request; it only holds clients and config
    app.state.dispatcher = CompletionDispatcher.from_settings(settings, build_providers(settings))

    try:
        yield
    finally:
        logger.info("Initiating graceful shutdown sequence")
        await app.state.dispatcher.aclose()
        await graceful_pool_close(app.state.db_pool)


app = FastAPI(
    title="Chatterbox API",
    description="""
## Chatterbox API

Multi-provider chat backend. Conversations are answered by OpenAI, Google
Gemini or Mistral with automatic fallback, and every assistant reply ends
with a block of suggested follow-up questions.

### Authentication
All endpoints except health checks, register and login require a JWT
Bearer token. Use `/api/auth/login` to obtain tokens.
""",
    version=health.APP_VERSION,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints for monitoring and orchestration"},
        {"name": "Authentication", "description": "Registration, login, token refresh"},
        {"name": "Conversations", "description": "Conversation CRUD and messaging"},
        {"name": "Settings", "description": "Per-user theme and model preferences"},
        {"name": "Models", "description": "Models available with the configured providers"},
    ],
)

# Register global exception handlers for consistent error responses
register_exception_handlers(app)

# Request context middleware (adds request ID tracking)
app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(conversations.router, prefix="/api/conversations", tags=["Conversations"])
app.include_router(settings_routes.router, prefix="/api/settings", tags=["Settings"])
app.include_router(models.router, prefix="/api/models", tags=["Models"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        reload_dirs=["src"],
        log_config=None,
    )
