"""
Resilience Router

Administrative and status endpoints for the resilience layer, plus the
substitute datasets served while emergency mode is active.

Endpoints:
    GET  /v1/resilience/status              combined component status
    POST /v1/resilience/circuit/reset       force the breaker CLOSED
    POST /v1/resilience/emergency/toggle    manual emergency mode toggle
    GET  /v1/resilience/notifications       visible error banners
    DELETE /v1/resilience/notifications/{id}
    GET  /v1/emergency/accounts|transactions|profile|summary
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from bank_resilience.api.deps import get_resilience_layer
from bank_resilience.models.banking import (
    Account,
    FinancialSummary,
    Transaction,
    UserProfile,
)
from bank_resilience.observability.logging import get_logger
from bank_resilience.resilience.emergency_mode import MANUAL_TOGGLE_REASON
from bank_resilience.resilience.layer import ResilienceLayer

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/resilience", tags=["Resilience"])
emergency_router = APIRouter(prefix="/v1/emergency", tags=["Emergency Data"])


# =============================================================================
# Request / Response Models
# =============================================================================


class EmergencyToggleRequest(BaseModel):
    reason: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Why emergency mode is being toggled",
    )


class CircuitResetResponse(BaseModel):
    message: str
    circuit_breaker: dict[str, Any]


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    operation_name: Optional[str] = None
    timestamp: str


# =============================================================================
# Administration
# =============================================================================


@router.get("/status")
async def get_status(
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> dict[str, Any]:
    return layer.get_status()


@router.post("/circuit/reset", response_model=CircuitResetResponse)
async def reset_circuit(
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> CircuitResetResponse:
    """Force the circuit breaker back to CLOSED."""
    message = await layer.force_reset()
    logger.warning("circuit breaker reset via admin API")
    return CircuitResetResponse(
        message=message,
        circuit_breaker=layer.circuit_breaker.get_status().to_dict(),
    )


@router.post("/emergency/toggle")
async def toggle_emergency_mode(
    body: Optional[EmergencyToggleRequest] = None,
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> dict[str, Any]:
    """Activate emergency mode if inactive, deactivate it otherwise."""
    reason = (body.reason if body else None) or MANUAL_TOGGLE_REASON
    emergency_status = await layer.toggle_emergency_mode(reason)
    return emergency_status.to_dict()


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> list[dict[str, Any]]:
    return [n.to_dict() for n in layer.notifications.visible()]


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_notification(
    notification_id: int,
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> None:
    if not layer.notifications.dismiss(notification_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification not found: {notification_id}",
        )


# =============================================================================
# Substitute Data
# =============================================================================


def require_emergency_mode(
    layer: ResilienceLayer = Depends(get_resilience_layer),
) -> ResilienceLayer:
    """
    Dependency guarding the substitute data endpoints.

    Raises:
        HTTPException: 409 if emergency mode is not active
    """
    if not layer.emergency_mode.is_active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Emergency mode is not active",
        )
    return layer


@emergency_router.get("/accounts", response_model=list[Account])
async def get_accounts(
    layer: ResilienceLayer = Depends(require_emergency_mode),
) -> list[Account]:
    return layer.emergency_mode.get_substitute_accounts()


@emergency_router.get("/transactions", response_model=list[Transaction])
async def get_transactions(
    limit: int = Query(default=20, ge=1, le=500),
    layer: ResilienceLayer = Depends(require_emergency_mode),
) -> list[Transaction]:
    return layer.emergency_mode.get_substitute_transactions(limit)


@emergency_router.get("/profile", response_model=UserProfile)
async def get_profile(
    layer: ResilienceLayer = Depends(require_emergency_mode),
) -> UserProfile:
    return layer.emergency_mode.get_substitute_user_profile()


@emergency_router.get("/summary", response_model=FinancialSummary)
async def get_summary(
    layer: ResilienceLayer = Depends(require_emergency_mode),
) -> FinancialSummary:
    return layer.emergency_mode.get_substitute_financial_summary()
