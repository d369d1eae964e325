"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' when the store answers, 'error' when not
  - No authentication required
"""

from __future__ import annotations


def test_health_returns_200_with_components(web_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = web_client.client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_reports_degraded_database(web_client, monkeypatch):
    """A failed database round-trip degrades the status without failing the probe."""
    monkeypatch.setattr(web_client.users, "ping", lambda: False)
    data = web_client.client.get("/api/v1/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_health_no_auth_required(web_client):
    """Health endpoint is accessible without a session cookie."""
    resp = web_client.client.get("/api/v1/health")
    assert resp.status_code == 200
    assert "session_id" not in web_client.client.cookies
