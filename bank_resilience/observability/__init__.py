"""
Observability Package

This package provides:
- Structured JSON logging with an operation-name context
- Prometheus metrics exposition
"""

from bank_resilience.observability.logging import (
    configure_logging,
    get_logger,
    get_operation,
    operation_context,
)
from bank_resilience.observability.metrics import generate_metrics, get_metrics_app

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_operation",
    "operation_context",
    # Metrics
    "get_metrics_app",
    "generate_metrics",
]
