"""
Health Router

Liveness and readiness endpoints.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from bank_resilience.api.deps import get_resilience_layer
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience.layer import ResilienceLayer

logger = get_logger(__name__)

APP_VERSION = "1.0.0"

router = APIRouter(tags=["Health"])


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    checks: dict[str, bool]


# =============================================================================
# Health Service
# =============================================================================


class HealthService:
    """Dependency checks behind the readiness endpoint."""

    def __init__(self, redis_client: Optional[Any] = None) -> None:
        self._redis_client = redis_client

    async def check_redis(self) -> bool:
        """
        Check Redis connectivity.

        Returns:
            True if Redis answers PING or is not configured
        """
        if self._redis_client is None:
            logger.debug("redis not configured, skipping health check")
            return True
        try:
            await self._redis_client.ping()
            return True
        except Exception as e:
            logger.warning("redis health check failed", error=str(e))
            return False


def get_health_service(request: Request) -> HealthService:
    return HealthService(getattr(request.app.state, "redis", None))


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(status="healthy", version=APP_VERSION)


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    health_service: HealthService = Depends(get_health_service),
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> ReadinessResponse:
    """
    Readiness probe.

    Returns 503 when Redis is unreachable or the layer has not started.
    """
    checks = {
        "redis": await health_service.check_redis(),
        "resilience_layer": layer.started,
    }
    ready = all(checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="ready" if ready else "not_ready", checks=checks)
