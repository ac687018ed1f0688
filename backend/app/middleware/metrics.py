"""
Prometheus Metrics Middleware

Provides request/response metrics plus job-service counters:
- HTTP request latency and count by endpoint and status
- Active request gauge
- Postcode lookup outcomes (resolved, not_found, transport_error, skipped)
- Listing query path (spatial, fallback, unfiltered)
- Job store query latency

Usage:
    from app.middleware.metrics import setup_metrics

    app = FastAPI()
    setup_metrics(app)

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

# Request latency histogram with custom buckets for sub-second monitoring
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Request counter
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

# Active requests gauge
ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method", "endpoint"]
)

# Postcode lookup outcomes
GEOCODE_LOOKUPS = Counter(
    "geocode_lookups_total",
    "Postcode lookups by outcome",
    ["outcome"]  # resolved, not_found, transport_error, skipped
)

GEOCODE_LATENCY = Histogram(
    "geocode_lookup_seconds",
    "Postcode lookup latency",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Listing path; a high fallback rate means geocoding is degraded
LISTING_QUERIES = Counter(
    "job_listing_queries_total",
    "Job listing requests by query path",
    ["path"]  # spatial, fallback, unfiltered
)

# Job store metrics
STORE_QUERY_LATENCY = Histogram(
    "job_store_query_seconds",
    "Job store operation latency",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5]
)

# Image store release outcomes
IMAGE_RELEASES = Counter(
    "image_releases_total",
    "Image release attempts by outcome",
    ["outcome"]  # released, failed, skipped, shared
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for Prometheus metrics collection.

    Records:
    - Request latency
    - Request count by status code
    - Active request count
    """

    def __init__(self, app: FastAPI, app_name: str = "job-service"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        """Process request and record metrics."""
        # Get endpoint path (use route pattern for consistency)
        endpoint = self._get_endpoint(request)
        method = request.method

        # Skip metrics endpoint
        if endpoint == "/metrics":
            return await call_next(request)

        # Track active requests
        ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint).inc()

        # Start timing
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status = str(response.status_code)
        except Exception as e:
            status = "500"
            logger.error(f"Request error: {e}")
            raise
        finally:
            # Calculate duration
            duration = time.perf_counter() - start_time

            # Record metrics
            REQUEST_LATENCY.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).observe(duration)

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            ACTIVE_REQUESTS.labels(
                method=method,
                endpoint=endpoint
            ).dec()

        return response

    def _get_endpoint(self, request: Request) -> str:
        """
        Get normalized endpoint path from request.

        Uses route pattern (e.g., /api/jobs/{id}) instead of
        actual path to avoid high cardinality.
        """
        # Try to match against routes; included routers carry no path of their own
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            path = getattr(route, "path", None)
            if match == Match.FULL and path:
                return path

        # Fallback to path
        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    """
    Endpoint handler for Prometheus metrics scraping.

    Returns metrics in Prometheus text format.
    """
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI) -> None:
    """
    Configure Prometheus metrics for FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # Add middleware
    app.add_middleware(PrometheusMiddleware, app_name="job-service")

    # Add metrics endpoint
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    logger.info("Prometheus metrics configured")


# ==================== Helper Functions ====================

def record_geocode_lookup(outcome: str, duration: Optional[float] = None) -> None:
    """Record a postcode lookup outcome and, when timed, its latency."""
    GEOCODE_LOOKUPS.labels(outcome=outcome).inc()
    if duration is not None:
        GEOCODE_LATENCY.observe(duration)


def record_listing_path(path: str) -> None:
    """Record which query path served a listing request."""
    LISTING_QUERIES.labels(path=path).inc()


def record_store_query_latency(operation: str, duration: float) -> None:
    """Record job store operation latency."""
    STORE_QUERY_LATENCY.labels(operation=operation).observe(duration)


def record_image_release(outcome: str) -> None:
    """Record an image release attempt."""
    IMAGE_RELEASES.labels(outcome=outcome).inc()
