"""
API Dependencies

FastAPI dependency functions for the API layer. Each can be replaced in
tests through ``app.dependency_overrides``.
"""

from fastapi import HTTPException, Request, status

from bank_resilience.resilience.layer import ResilienceLayer


def get_resilience_layer(request: Request) -> ResilienceLayer:
    """
    Get the ResilienceLayer built by the application lifespan.

    Raises:
        HTTPException: 503 if the layer has not been initialized
    """
    layer = getattr(request.app.state, "resilience", None)
    if layer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Resilience layer is not initialized",
        )
    return layer
