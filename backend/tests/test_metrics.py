"""
Tests for the Prometheus middleware and job-service counters.

Requests here go through the real app and middleware stack; only the
matching engine is replaced.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from starlette.requests import Request
from starlette.routing import Match

from app.dependencies import get_matching_engine
from app.main import app
from app.middleware.metrics import PrometheusMiddleware, record_image_release
from app.schemas import JobListResponse, Pagination


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class PathlessRoute:
    """Route-like object without a path, as included routers are on newer FastAPI."""

    def matches(self, scope):
        return Match.FULL, {}


@pytest.fixture
def client():
    engine = MagicMock()
    engine.list = AsyncMock(
        return_value=JobListResponse(
            items=[],
            pagination=Pagination(page=1, page_size=10, total=0, total_pages=0),
        )
    )
    app.dependency_overrides[get_matching_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestEndpointLabel:
    """Test route pattern lookup for the endpoint label."""

    def test_pathless_route_falls_back_to_request_path(self):
        """A matching route with no path should not break the lookup."""
        routes_app = MagicMock()
        routes_app.routes = [PathlessRoute()]
        request = Request(
            {"type": "http", "method": "GET", "path": "/api/jobs", "query_string": b"", "headers": [], "app": routes_app}
        )

        assert PrometheusMiddleware(app=None)._get_endpoint(request) == "/api/jobs"


class TestRequestMetrics:
    """Test metrics recorded for real requests."""

    def test_listing_request_is_counted(self, client):
        """GET /api/jobs passes through the middleware and is counted."""
        labels = {"method": "GET", "endpoint": "/api/jobs", "status": "200"}
        before = sample("http_requests_total", **labels)

        response = client.get("/api/jobs")

        assert response.status_code == 200
        assert sample("http_requests_total", **labels) == before + 1

    def test_health_request_is_counted(self, client):
        """Routes declared on the app itself keep their own label."""
        labels = {"method": "GET", "endpoint": "/health", "status": "200"}
        before = sample("http_requests_total", **labels)

        assert client.get("/health").status_code == 200
        assert sample("http_requests_total", **labels) == before + 1

    def test_metrics_endpoint_exposes_counters(self, client):
        """The /metrics scrape includes the job-service counters."""
        record_image_release("skipped")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "image_releases_total" in response.text


class TestImageReleaseCounter:
    """Test the image release outcome counter."""

    @pytest.mark.parametrize("outcome", ["released", "failed", "skipped", "shared"])
    def test_outcomes_are_counted_separately(self, outcome):
        """Each release outcome has its own series."""
        before = sample("image_releases_total", outcome=outcome)
        record_image_release(outcome)
        assert sample("image_releases_total", outcome=outcome) == before + 1
