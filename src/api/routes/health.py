"""
Health check endpoints.

Provides health, readiness, and liveness probes. The health payload also
reports which completion providers have credentials.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.dependencies import DB, Dispatcher
from core.constants import get_settings
from models.schemas.health import (
    DatabaseHealth,
    HealthResponse,
    LivenessResponse,
    ProvidersHealth,
    ReadinessResponse,
)
from utils.db_utils import check_pool_health

APP_VERSION = "1.0.0"

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Database pool statistics and completion provider configuration.",
    responses={
        200: {
            "description": "System health status",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": APP_VERSION,
                        "database": {"healthy": True, "pool_size": 10, "pool_free": 8, "pool_used": 2},
                        "providers": {
                            "configured": ["mistral", "openai"],
                            "fallback_chain": ["mistral:mistral-large-latest", "openai:gpt-3.5-turbo"],
                        },
                    }
                }
            },
        }
    },
)
async def health_check(db: DB, dispatcher: Dispatcher) -> HealthResponse:
    """Comprehensive health check endpoint."""
    db_health_data = await check_pool_health(db)
    db_healthy = db_health_data.get("healthy", False)
    configured = sorted(dispatcher.configured_providers)

    # Without credentials every send fails, but the API itself still works
    if db_healthy and configured:
        status = "healthy"
    elif db_healthy:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=APP_VERSION,
        database=DatabaseHealth(
            healthy=db_healthy,
            pool_size=db_health_data.get("pool_size", 0),
            pool_free=db_health_data.get("pool_free", 0),
            pool_used=db_health_data.get("pool_used", 0),
            error=db_health_data.get("error"),
        ),
        providers=ProvidersHealth(
            configured=configured,
            fallback_chain=list(get_settings().fallback_chain),
        ),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={
        503: {
            "description": "Service not ready",
            "content": {"application/json": {"example": {"ready": False, "error": "Database unavailable"}}},
        },
    },
)
async def readiness_check(db: DB) -> ReadinessResponse | JSONResponse:
    """Kubernetes-style readiness probe."""
    try:
        async with db.acquire(timeout=5.0) as conn:
            await conn.fetchval("SELECT 1")
        return ReadinessResponse(ready=True)
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "error": str(e)},
        )


@router.get("/health/live", response_model=LivenessResponse, summary="Liveness probe")
async def liveness_check() -> LivenessResponse:
    """Kubernetes-style liveness probe."""
    return LivenessResponse(alive=True)
