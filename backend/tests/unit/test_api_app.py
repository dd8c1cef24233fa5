"""Tests for the FastAPI application shell.

Covers the health check, correlation ID propagation, CORS and the
registered routes. Endpoint behavior is covered by the contract tests.
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def app_client():
    """Create a test client for the FastAPI app."""
    from prebooking_api.main import app

    return TestClient(app)


class TestHealthCheck:
    """Tests for the /ping health check endpoint."""

    def test_ping_returns_ok(self, app_client: TestClient):
        response = app_client.get("/ping")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "bgo-prebooking-payments"
        assert "timestamp" in data


class TestCorrelationId:
    """X-Correlation-ID is echoed or generated."""

    def test_incoming_id_is_echoed(self, app_client: TestClient):
        response = app_client.get("/ping", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_id_is_generated_when_missing(self, app_client: TestClient):
        first = app_client.get("/ping").headers["X-Correlation-ID"]
        second = app_client.get("/ping").headers["X-Correlation-ID"]

        assert first
        assert first != second


class TestCorsConfiguration:
    """Tests for CORS middleware configuration."""

    def test_preflight_from_dev_origin(self, app_client: TestClient):
        response = app_client.options(
            "/payment/checkout",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_unknown_origin_is_not_allowed(self, app_client: TestClient):
        response = app_client.get("/ping", headers={"Origin": "https://evil.example.com"})

        assert "access-control-allow-origin" not in response.headers


class TestRoutesRegistered:
    """Tests that all expected routes are registered."""

    @pytest.mark.parametrize(
        ("path", "method"),
        [
            ("/ping", "GET"),
            ("/payment/checkout", "POST"),
            ("/payment/status/{booking_id}", "GET"),
            ("/webhook/payment", "POST"),
        ],
    )
    def test_route_exists(self, path: str, method: str):
        from prebooking_api.main import app

        routes = {
            (route.path, method_name)
            for route in app.routes
            for method_name in getattr(route, "methods", set())
        }
        assert (path, method) in routes

    def test_lambda_handler_is_exposed(self):
        from mangum import Mangum

        from prebooking_api.main import handler

        assert isinstance(handler, Mangum)
