"""API route modules."""

from bank_resilience.api.routes.health import router as health_router
from bank_resilience.api.routes.resilience import (
    emergency_router,
    router as resilience_router,
)

__all__ = ["health_router", "resilience_router", "emergency_router"]
