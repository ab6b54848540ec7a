"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' for a live store
  - No authentication required
"""

from __future__ import annotations


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(client):
    """Health endpoint is accessible without cookies or an Authorization header."""
    client.cookies.clear()
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
