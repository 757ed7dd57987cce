"""
Resilience Metrics

This module provides Prometheus metrics for the circuit breaker, the request
throttle and emergency mode.

Metrics Provided:
- Circuit breaker state transitions (counter) and current state (gauge)
- Circuit breaker fast-fails (counter)
- Throttle rejections (counter) and quota backoff delays (histogram)
- Emergency mode active flag (gauge) and activations (counter)
"""

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Constants
# =============================================================================

METRIC_CIRCUIT_TRANSITIONS = "bank_resilience_circuit_breaker_state_transitions_total"
METRIC_CIRCUIT_STATE = "bank_resilience_circuit_breaker_state"
METRIC_CIRCUIT_REJECTIONS = "bank_resilience_circuit_breaker_rejections_total"
METRIC_THROTTLE_REJECTIONS = "bank_resilience_throttle_rejections_total"
METRIC_BACKOFF_DELAY = "bank_resilience_throttle_backoff_delay_seconds"
METRIC_EMERGENCY_ACTIVE = "bank_resilience_emergency_mode_active"
METRIC_EMERGENCY_ACTIVATIONS = "bank_resilience_emergency_mode_activations_total"


# =============================================================================
# Circuit Breaker Metrics
# =============================================================================

CIRCUIT_STATE_TRANSITIONS = Counter(
    name=METRIC_CIRCUIT_TRANSITIONS,
    documentation="Total number of circuit breaker state transitions",
    labelnames=["circuit_name", "to_state", "from_state"],
)

CIRCUIT_STATE_GAUGE = Gauge(
    name=METRIC_CIRCUIT_STATE,
    documentation="Current state of circuit breaker (0=closed, 1=half_open, 2=open)",
    labelnames=["circuit_name"],
)

CIRCUIT_REJECTIONS = Counter(
    name=METRIC_CIRCUIT_REJECTIONS,
    documentation="Calls fast-failed without invoking the wrapped operation",
    labelnames=["circuit_name"],
)

_STATE_TO_NUMERIC = {
    "closed": 0,
    "half_open": 1,
    "open": 2,
}


def record_circuit_state_transition(
    circuit_name: str,
    to_state: str,
    from_state: str,
) -> None:
    """
    Record a circuit breaker state transition.

    Args:
        circuit_name: Name of the circuit breaker
        to_state: State transitioning to (closed, open, half_open)
        from_state: State transitioning from (closed, open, half_open)
    """
    CIRCUIT_STATE_TRANSITIONS.labels(
        circuit_name=circuit_name,
        to_state=to_state,
        from_state=from_state,
    ).inc()

    CIRCUIT_STATE_GAUGE.labels(circuit_name=circuit_name).set(
        _STATE_TO_NUMERIC.get(to_state, 0)
    )


def record_circuit_rejection(circuit_name: str) -> None:
    """Record a fast-failed call."""
    CIRCUIT_REJECTIONS.labels(circuit_name=circuit_name).inc()


# =============================================================================
# Throttle Metrics
# =============================================================================

THROTTLE_REJECTIONS = Counter(
    name=METRIC_THROTTLE_REJECTIONS,
    documentation="Calls rejected by the throttle pre-check",
    labelnames=["operation"],
)

BACKOFF_DELAY = Histogram(
    name=METRIC_BACKOFF_DELAY,
    documentation="Backoff delays computed for quota errors",
    labelnames=["operation"],
    buckets=(1.0, 2.0, 4.0, 8.0, 16.0, 30.0),
)


def record_throttle_rejection(operation: str) -> None:
    """Record a throttle pre-check rejection."""
    THROTTLE_REJECTIONS.labels(operation=operation).inc()


def record_backoff_delay(operation: str, delay_seconds: float) -> None:
    """Record a computed quota backoff delay."""
    BACKOFF_DELAY.labels(operation=operation).observe(delay_seconds)


# =============================================================================
# Emergency Mode Metrics
# =============================================================================

EMERGENCY_MODE_ACTIVE = Gauge(
    name=METRIC_EMERGENCY_ACTIVE,
    documentation="Whether emergency mode is active (1) or not (0)",
)

EMERGENCY_MODE_ACTIVATIONS = Counter(
    name=METRIC_EMERGENCY_ACTIVATIONS,
    documentation="Total number of emergency mode activations",
)


def record_emergency_mode(active: bool, restored: bool = False) -> None:
    """
    Record an emergency mode change.

    Args:
        active: New emergency mode flag
        restored: State was read back at start-up, not a new activation
    """
    EMERGENCY_MODE_ACTIVE.set(1 if active else 0)
    if active and not restored:
        EMERGENCY_MODE_ACTIVATIONS.inc()
