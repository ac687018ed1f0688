"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus metrics collection
"""

from app.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
    GEOCODE_LOOKUPS,
    LISTING_QUERIES,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "GEOCODE_LOOKUPS",
    "LISTING_QUERIES",
]
