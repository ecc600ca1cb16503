"""Tests for main API endpoints."""

from fastapi.testclient import TestClient


def test_health_check(client: TestClient) -> None:
    """Test health check endpoint returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_api_prefix() -> None:
    """Test that API v1 prefix is configured correctly."""
    from src.shots.config import settings

    assert settings.api_v1_prefix == "/api/v1"


def test_routes_are_mounted(client: TestClient) -> None:
    """Test that identity and onboarding routes are registered under the prefix."""
    paths = client.app.openapi()["paths"]

    assert "/api/v1/auth/sign-in" in paths
    assert "/api/v1/me" in paths
    assert "/api/v1/onboarding" in paths
