"""
Prometheus Metrics Exposition

The resilience metrics themselves live in bank_resilience.resilience.metrics;
this module exposes the default registry over HTTP and as text.
"""

from typing import Any, Callable

from prometheus_client import REGISTRY, generate_latest, make_asgi_app


def get_metrics_app() -> Callable[..., Any]:
    """
    Get ASGI app for the /metrics endpoint.

    Returns:
        ASGI application that serves Prometheus metrics
    """
    return make_asgi_app()


def generate_metrics() -> str:
    """
    Generate Prometheus metrics text format.

    Returns:
        Prometheus exposition format text
    """
    return generate_latest(REGISTRY).decode("utf-8")
