"""Tests for API health and status endpoints.

This module tests the health check and root endpoints of the API.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from fastapi.testclient import TestClient

from ijazah_api.api import app
from ijazah_api.api_utils import services


def test_root_endpoint(test_client):
    """Test the root endpoint returns API information."""
    response = test_client.get("/")

    assert response.status_code == 200
    data = response.json()

    assert data["message"] == "Ijazah Platform API"
    assert "version" in data
    assert data["status"] == "operational"


def test_root_endpoint_not_initialized():
    """Test the root endpoint reports an uninitialized service."""
    services.clear()
    client = TestClient(app)

    response = client.get("/")

    assert response.status_code == 503
    assert response.json()["error"] == "Service not initialized"


def test_health_check(test_client, store):
    """Test the enhanced health check endpoint."""
    response = test_client.get("/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "healthy"
    assert "timestamp" in data

    checks = data["checks"]
    assert checks["data_store"]["status"] == "healthy"
    assert checks["data_store"]["data_dir_exists"] is True
    assert checks["data_store"]["data_dir_path"] == str(store.base_dir)

    assert checks["platform_config"]["loaded"] is True
    assert checks["platform_config"]["narration_readings"] == 10

    assert checks["disk_space"]["status"] in ["healthy", "warning"]


def test_health_check_degraded_without_config(test_client):
    """Test that a missing platform config degrades the service."""
    services["platform_config"] = {}

    response = test_client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["platform_config"]["status"] == "unhealthy"


def test_openapi_json_endpoint(test_client):
    """Test that the OpenAPI JSON spec is available."""
    response = test_client.get("/openapi.json")

    assert response.status_code == 200
    assert "application/json" in response.headers["content-type"]
    paths = response.json()["paths"]
    assert "/applications" in paths
    assert "/verify/{certificate_number}" in paths
