"""
Tests for health checks.
"""

import pytest
from httpx import AsyncClient

from togglehub.utils.health import (
    ComponentHealth,
    HealthChecker,
    HealthStatus,
    check_database,
    check_toggle_store,
)


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["health"] == "GOOD"
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    generated = await client.get("/health")
    forwarded = await client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert generated.headers["x-request-id"]
    assert forwarded.headers["x-request-id"] == "abc-123"


@pytest.mark.asyncio
async def test_component_checks(db, toggle_factory):
    await toggle_factory.create("one")

    database = await check_database(db, slow_ms=10_000)
    toggles = await check_toggle_store(db)

    assert database.status == HealthStatus.HEALTHY
    assert toggles.status == HealthStatus.HEALTHY
    assert toggles.details == {"count": 1}


@pytest.mark.asyncio
async def test_checker_reports_worst_status():
    async def healthy():
        return ComponentHealth(name="a", status=HealthStatus.HEALTHY)

    async def degraded():
        return ComponentHealth(name="b", status=HealthStatus.DEGRADED)

    async def broken():
        raise RuntimeError("down")

    checker = HealthChecker(version="0.1.0", environment="testing")
    checker.add_check("a", healthy)
    checker.add_check("b", degraded)
    health = await checker.run()
    assert health.status == HealthStatus.DEGRADED

    checker.add_check("c", broken)
    health = await checker.run()
    assert health.status == HealthStatus.UNHEALTHY
    assert health.to_dict()["components"]["c"]["message"] == "down"
