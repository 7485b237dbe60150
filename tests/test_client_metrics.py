"""
Tests for client registration and metrics.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from togglehub.models.api_token import ApiTokenType
from togglehub.models.client_metrics import ClientInstance
from togglehub.schemas.client_metrics import ClientMetrics
from togglehub.services.client_metrics import ClientMetricsService
from togglehub.utils.timezone import start_of_hour, to_iso8601, utc_now


def metrics_body(feature_name: str, yes: int, no: int, start=None, **extra) -> dict:
    start = start or utc_now()
    return {
        "appName": "web",
        "instanceId": "i-1",
        "bucket": {
            "start": start.isoformat(),
            "stop": (start + timedelta(seconds=10)).isoformat(),
            "toggles": {feature_name: {"yes": yes, "no": no}},
        },
        **extra,
    }


class TestClientApi:
    """Server-side SDK endpoints."""

    @pytest.mark.asyncio
    async def test_register_returns_202(self, client: AsyncClient, client_headers, db):
        response = await client.post(
            "/api/client/register",
            json={
                "appName": "backend",
                "instanceId": "pod-1",
                "interval": 15000,
                "started": utc_now().isoformat(),
                "strategies": ["default", "flexibleRollout"],
            },
            headers=client_headers,
        )

        assert response.status_code == 202
        assert response.text == "OK"

        instances = (await db.execute(select(ClientInstance))).scalars().all()
        assert [(i.app_name, i.instance_id, i.environment) for i in instances] == [
            ("backend", "pod-1", "default")
        ]

    @pytest.mark.asyncio
    async def test_metrics_returns_202(self, client: AsyncClient, client_headers):
        response = await client.post(
            "/api/client/metrics",
            json=metrics_body("f1", 1, 1),
            headers=client_headers,
        )

        assert response.status_code == 202

    @pytest.mark.asyncio
    async def test_metrics_rejects_bad_body(self, client: AsyncClient, client_headers):
        response = await client.post(
            "/api/client/metrics",
            json={"appName": "web"},
            headers=client_headers,
        )

        assert response.status_code == 400
        assert response.json()["name"] == "BadRequestError"

    @pytest.mark.asyncio
    async def test_metrics_rejects_bucket_stopping_before_start(
        self, client: AsyncClient, client_headers
    ):
        now = utc_now()
        body = metrics_body("f1", 1, 1)
        body["bucket"]["stop"] = (now - timedelta(minutes=5)).isoformat()

        response = await client.post("/api/client/metrics", json=body, headers=client_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_frontend_token_forbidden(self, client: AsyncClient, frontend_headers):
        response = await client.post(
            "/api/client/metrics",
            json=metrics_body("f1", 1, 1),
            headers=frontend_headers,
        )

        assert response.status_code == 403


class TestEnvironmentResolution:

    @pytest.mark.asyncio
    async def test_token_environment_wins(
        self, client: AsyncClient, admin_headers, token_factory, project_factory
    ):
        await project_factory.create_environment("staging")
        headers = await token_factory.headers(ApiTokenType.CLIENT, environment="staging")

        await client.post(
            "/api/client/metrics",
            json=metrics_body("f1", 2, 0, environment="production"),
            headers=headers,
        )

        response = await client.get("/api/admin/client-metrics/features/f1", headers=admin_headers)
        assert [u["environment"] for u in response.json()["lastHourUsage"]] == ["staging"]

    @pytest.mark.asyncio
    async def test_wildcard_token_uses_body_environment(self, client: AsyncClient, admin_headers):
        await client.post(
            "/api/client/metrics",
            json=metrics_body("f1", 1, 0, environment="production"),
            headers=admin_headers,
        )
        await client.post(
            "/api/client/metrics",
            json=metrics_body("f1", 1, 0),
            headers=admin_headers,
        )

        response = await client.get("/api/admin/client-metrics/features/f1", headers=admin_headers)
        environments = sorted(u["environment"] for u in response.json()["lastHourUsage"])
        assert environments == ["default", "production"]


class TestUsageQueries:

    @pytest.mark.asyncio
    async def test_buckets_merge_per_hour(self, db):
        service = ClientMetricsService(db)
        now = utc_now()
        two_hours_ago = now - timedelta(hours=2)

        await service.ingest(ClientMetrics.model_validate(metrics_body("f1", 1, 2, now)), "default")
        await service.ingest(ClientMetrics.model_validate(metrics_body("f1", 3, 4, now)), "default")
        await service.ingest(
            ClientMetrics.model_validate(metrics_body("f1", 5, 5, two_hours_ago)), "default"
        )

        usage = await service.feature_usage("f1")
        assert [(u.timestamp, u.yes, u.no) for u in usage.last_hour_usage] == [
            (to_iso8601(start_of_hour(now)), 4, 6)
        ]
        assert usage.seen_applications == ["web"]

        raw = await service.feature_usage_raw("f1", hours_back=3)
        assert raw.hours_back == 3
        assert sorted((u.yes, u.no) for u in raw.data) == [(4, 6), (5, 5)]

    @pytest.mark.asyncio
    async def test_unknown_feature_has_no_usage(self, db):
        usage = await ClientMetricsService(db).feature_usage("nothing")

        assert usage.last_hour_usage == []
        assert usage.seen_applications == []

    @pytest.mark.asyncio
    async def test_raw_usage_endpoint(self, client: AsyncClient, admin_headers):
        await client.post(
            "/api/client/metrics",
            json=metrics_body("f1", 7, 3),
            headers=admin_headers,
        )

        response = await client.get(
            "/api/admin/client-metrics/features/f1/raw?hoursBack=2",
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["featureName"] == "f1"
        assert body["hoursBack"] == 2
        assert [(d["yes"], d["no"]) for d in body["data"]] == [(7, 3)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hours_back", [0, 49])
    async def test_raw_usage_hours_back_bounds(self, client: AsyncClient, admin_headers, hours_back):
        response = await client.get(
            f"/api/admin/client-metrics/features/f1/raw?hoursBack={hours_back}",
            headers=admin_headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_usage_requires_admin(self, client: AsyncClient, client_headers):
        response = await client.get(
            "/api/admin/client-metrics/features/f1",
            headers=client_headers,
        )

        assert response.status_code == 403
