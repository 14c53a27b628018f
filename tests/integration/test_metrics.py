"""Integration tests for the health and Prometheus metrics endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_metrics_endpoint_returns_prometheus_metrics(client: AsyncClient):
    # Touch at least one endpoint so counters/histograms have samples.
    health = await client.get("/api/health")
    assert health.status_code == 200

    response = await client.get("/api/metrics")
    assert response.status_code == 200
    body = response.text

    assert "psyrisk_http_requests_total" in body
    assert "psyrisk_http_request_duration_seconds" in body
    assert "psyrisk_reminders_processed_total" in body
    assert "psyrisk_token_validations_total" in body


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})
    assert response.headers.get("X-Request-ID") == "req-123"
