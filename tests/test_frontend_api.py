"""
Tests for the frontend API.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from togglehub.models.api_token import ApiTokenType
from togglehub.utils.timezone import start_of_hour, to_iso8601, utc_now


def disabled_toggle(name: str) -> dict:
    return {
        "name": name,
        "enabled": True,
        "impressionData": False,
        "variant": {"enabled": False, "name": "disabled"},
    }


# ============ Authentication ============


@pytest.mark.asyncio
async def test_requires_frontend_or_admin_token(client: AsyncClient):
    response = await client.get("/api/frontend")

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/json")
    assert response.json()["name"] == "UnauthorizedError"


@pytest.mark.asyncio
async def test_rejects_client_token(client: AsyncClient, client_headers):
    response = await client.get("/api/frontend", headers=client_headers)

    assert response.status_code == 403
    assert response.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_allows_admin_token(client: AsyncClient, admin_headers):
    response = await client.get("/api/frontend", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"toggles": []}


@pytest.mark.asyncio
async def test_admin_api_rejects_frontend_token(client: AsyncClient, frontend_headers):
    response = await client.get("/api/admin/features", headers=frontend_headers)

    assert response.status_code == 403
    assert response.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_client_api_rejects_frontend_token(client: AsyncClient, frontend_headers):
    response = await client.get("/api/client/features", headers=frontend_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_rejects_truncated_token(client: AsyncClient, token_factory):
    secret = await token_factory.create(ApiTokenType.FRONTEND)

    response = await client.get("/api/frontend", headers={"Authorization": secret[:-1]})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_allows_frontend_token(client: AsyncClient, frontend_headers):
    response = await client.get("/api/frontend", headers=frontend_headers)

    assert response.status_code == 200
    assert response.json() == {"toggles": []}


@pytest.mark.asyncio
async def test_accepts_bearer_prefix(client: AsyncClient, token_factory):
    secret = await token_factory.create(ApiTokenType.FRONTEND)

    response = await client.get("/api/frontend", headers={"Authorization": f"Bearer {secret}"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unimplemented_endpoints_return_405(client: AsyncClient, frontend_headers):
    responses = [
        await client.post("/api/frontend", json={}, headers=frontend_headers),
        await client.get("/api/frontend/client/features", headers=frontend_headers),
        await client.get("/api/frontend/health", headers=frontend_headers),
        await client.get("/api/frontend/internal-backstage/prometheus", headers=frontend_headers),
    ]

    for response in responses:
        assert response.status_code == 405
        assert response.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_unimplemented_endpoints_authenticate_first(client: AsyncClient, client_headers):
    response = await client.post("/api/frontend", json={})
    assert response.status_code == 401

    response = await client.get("/api/frontend/health", headers=client_headers)
    assert response.status_code == 403


# ============ Registration and metrics ============


@pytest.mark.asyncio
async def test_client_registration(client: AsyncClient, frontend_headers):
    response = await client.post(
        "/api/frontend/client/register",
        json={},
        headers=frontend_headers,
    )
    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/json")

    response = await client.post(
        "/api/frontend/client/register",
        json={
            "appName": uuid4().hex,
            "instanceId": uuid4().hex,
            "sdkVersion": "unleash-proxy-client:2.0.0",
            "environment": "default",
            "interval": 10000,
            "started": utc_now().isoformat(),
            "strategies": ["default"],
        },
        headers=frontend_headers,
    )
    assert response.status_code == 200
    assert response.text == "OK"


@pytest.mark.asyncio
async def test_stores_client_metrics(client: AsyncClient, frontend_headers, admin_headers):
    now = utc_now()
    app_name = uuid4().hex
    instance_id = uuid4().hex
    feature_name = uuid4().hex

    response = await client.get(
        f"/api/admin/client-metrics/features/{feature_name}",
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "featureName": feature_name,
        "lastHourUsage": [],
        "maturity": "stable",
        "seenApplications": [],
        "version": 1,
    }

    for yes, no in [(1, 10), (2, 20)]:
        response = await client.post(
            "/api/frontend/client/metrics",
            json={
                "appName": app_name,
                "instanceId": instance_id,
                "bucket": {
                    "start": now.isoformat(),
                    "stop": now.isoformat(),
                    "toggles": {feature_name: {"yes": yes, "no": no}},
                },
            },
            headers=frontend_headers,
        )
        assert response.status_code == 200
        assert response.text == "OK"

    response = await client.get(
        f"/api/admin/client-metrics/features/{feature_name}",
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "featureName": feature_name,
        "lastHourUsage": [
            {
                "environment": "default",
                "timestamp": to_iso8601(start_of_hour(now)),
                "yes": 3,
                "no": 30,
            }
        ],
        "maturity": "stable",
        "seenApplications": [app_name],
        "version": 1,
    }


# ============ Filtering ============


@pytest.mark.asyncio
async def test_filters_by_enabled(client: AsyncClient, frontend_headers, toggle_factory):
    await toggle_factory.create("enabledFeature1", enabled=True)
    await toggle_factory.create("enabledFeature2", enabled=True)
    await toggle_factory.create("disabledFeature", enabled=False)

    response = await client.get("/api/frontend", headers=frontend_headers)

    assert response.status_code == 200
    assert response.json() == {
        "toggles": [
            disabled_toggle("enabledFeature1"),
            disabled_toggle("enabledFeature2"),
        ]
    }


@pytest.mark.asyncio
async def test_filters_by_strategies(client: AsyncClient, frontend_headers, toggle_factory):
    await toggle_factory.create("featureWithoutStrategies", enabled=True, strategies=[])
    await toggle_factory.create(
        "featureWithUnknownStrategy",
        enabled=True,
        strategies=[{"name": "unknown", "constraints": [], "parameters": {}}],
    )
    await toggle_factory.create(
        "featureWithMultipleStrategies",
        enabled=True,
        strategies=[
            {"name": "default", "constraints": [], "parameters": {}},
            {"name": "unknown", "constraints": [], "parameters": {}},
        ],
    )

    response = await client.get("/api/frontend", headers=frontend_headers)

    # Zero strategies never qualifies; unknown strategy names count when
    # their constraints pass.
    assert response.json() == {
        "toggles": [
            disabled_toggle("featureWithUnknownStrategy"),
            disabled_toggle("featureWithMultipleStrategies"),
        ]
    }


@pytest.mark.asyncio
async def test_strict_strategy_names_exclude_unknown(
    client: AsyncClient, frontend_headers, toggle_factory
):
    from togglehub.core.config import FrontendSettings, get_settings
    from togglehub.main import app

    settings = get_settings().model_copy(
        update={"frontend": FrontendSettings(strict_strategy_names=True)}
    )
    app.dependency_overrides[get_settings] = lambda: settings

    await toggle_factory.create(
        "featureWithUnknownStrategy",
        strategies=[{"name": "unknown", "constraints": [], "parameters": {}}],
    )
    await toggle_factory.create(
        "featureWithMultipleStrategies",
        strategies=[
            {"name": "default", "constraints": [], "parameters": {}},
            {"name": "unknown", "constraints": [], "parameters": {}},
        ],
    )

    response = await client.get("/api/frontend", headers=frontend_headers)

    assert response.json() == {"toggles": [disabled_toggle("featureWithMultipleStrategies")]}


@pytest.mark.asyncio
async def test_filters_by_constraints(client: AsyncClient, frontend_headers, toggle_factory):
    await toggle_factory.create(
        "featureWithAppNameA",
        strategies=[{
            "name": "default",
            "constraints": [{"contextName": "appName", "operator": "IN", "values": ["a"]}],
        }],
    )
    await toggle_factory.create(
        "featureWithAppNameAorB",
        strategies=[{
            "name": "default",
            "constraints": [{"contextName": "appName", "operator": "IN", "values": ["a", "b"]}],
        }],
    )

    for app_name, expected in [("a", 2), ("b", 1), ("c", 0)]:
        response = await client.get(
            "/api/frontend",
            params={"appName": app_name},
            headers=frontend_headers,
        )
        assert response.status_code == 200
        assert len(response.json()["toggles"]) == expected


@pytest.mark.asyncio
async def test_missing_context_field_fails_constraint(
    client: AsyncClient, frontend_headers, toggle_factory
):
    await toggle_factory.create(
        "notForBeta",
        strategies=[{
            "name": "default",
            "constraints": [{"contextName": "appName", "operator": "NOT_IN", "values": ["beta"]}],
        }],
    )

    response = await client.get("/api/frontend", headers=frontend_headers)
    assert response.json() == {"toggles": []}

    response = await client.get("/api/frontend?appName=web", headers=frontend_headers)
    assert response.json() == {"toggles": [disabled_toggle("notForBeta")]}


@pytest.mark.asyncio
async def test_custom_properties_from_query(client: AsyncClient, frontend_headers, toggle_factory):
    await toggle_factory.create(
        "norwayOnly",
        strategies=[{
            "name": "default",
            "constraints": [{"contextName": "country", "operator": "IN", "values": ["no"]}],
        }],
    )

    response = await client.get("/api/frontend?properties[country]=no", headers=frontend_headers)
    assert len(response.json()["toggles"]) == 1

    response = await client.get("/api/frontend?country=no", headers=frontend_headers)
    assert len(response.json()["toggles"]) == 1

    response = await client.get("/api/frontend?country=se", headers=frontend_headers)
    assert response.json()["toggles"] == []


@pytest.mark.asyncio
async def test_filters_by_project(
    client: AsyncClient, token_factory, project_factory, toggle_factory
):
    await project_factory.create("projectA")
    await project_factory.create("projectB")
    default_headers = await token_factory.headers(ApiTokenType.FRONTEND)
    project_a_headers = await token_factory.headers(ApiTokenType.FRONTEND, projects=["projectA"])
    project_ab_headers = await token_factory.headers(
        ApiTokenType.FRONTEND, projects=["projectA", "projectB"]
    )
    await toggle_factory.create("featureInProjectDefault")
    await toggle_factory.create("featureInProjectA", project="projectA")
    await toggle_factory.create("featureInProjectB", project="projectB")

    response = await client.get("/api/frontend", headers=default_headers)
    assert response.json() == {"toggles": [disabled_toggle("featureInProjectDefault")]}

    response = await client.get("/api/frontend", headers=project_a_headers)
    assert response.json() == {"toggles": [disabled_toggle("featureInProjectA")]}

    response = await client.get("/api/frontend", headers=project_ab_headers)
    assert response.json() == {
        "toggles": [
            disabled_toggle("featureInProjectA"),
            disabled_toggle("featureInProjectB"),
        ]
    }


@pytest.mark.asyncio
async def test_filters_by_environment(
    client: AsyncClient, token_factory, project_factory, toggle_factory
):
    await project_factory.create_environment("environmentA")
    await project_factory.create_environment("environmentB")
    default_headers = await token_factory.headers(ApiTokenType.FRONTEND)
    env_a_headers = await token_factory.headers(ApiTokenType.FRONTEND, environment="environmentA")
    env_b_headers = await token_factory.headers(ApiTokenType.FRONTEND, environment="environmentB")
    await toggle_factory.create("featureInEnvironmentDefault")
    await toggle_factory.create("featureInEnvironmentA", environment="environmentA")
    await toggle_factory.create("featureInEnvironmentB", environment="environmentB")

    response = await client.get("/api/frontend", headers=default_headers)
    assert response.json() == {"toggles": [disabled_toggle("featureInEnvironmentDefault")]}

    response = await client.get("/api/frontend", headers=env_a_headers)
    assert response.json() == {"toggles": [disabled_toggle("featureInEnvironmentA")]}

    response = await client.get("/api/frontend", headers=env_b_headers)
    assert response.json() == {"toggles": [disabled_toggle("featureInEnvironmentB")]}


@pytest.mark.asyncio
async def test_admin_token_sees_every_environment(
    client: AsyncClient, admin_headers, project_factory, toggle_factory
):
    await project_factory.create_environment("environmentA")
    await toggle_factory.create("featureInEnvironmentDefault")
    await toggle_factory.create("featureInEnvironmentA", environment="environmentA")
    await toggle_factory.create("featureOff", enabled=False)

    response = await client.get("/api/frontend", headers=admin_headers)

    assert response.json() == {
        "toggles": [
            disabled_toggle("featureInEnvironmentDefault"),
            disabled_toggle("featureInEnvironmentA"),
        ]
    }


@pytest.mark.asyncio
async def test_keeps_creation_order(client: AsyncClient, frontend_headers, toggle_factory):
    for name in ["zeta", "alpha", "mid"]:
        await toggle_factory.create(name)

    response = await client.get("/api/frontend", headers=frontend_headers)

    assert [t["name"] for t in response.json()["toggles"]] == ["zeta", "alpha", "mid"]


@pytest.mark.asyncio
async def test_returns_sticky_variant(client: AsyncClient, frontend_headers, toggle_factory):
    await toggle_factory.create(
        "colors",
        impression_data=True,
        variants=[
            {"name": "blue", "weight": 500, "payload": {"type": "string", "value": "#00f"}},
            {"name": "red", "weight": 500},
        ],
    )

    first = await client.get("/api/frontend?userId=42", headers=frontend_headers)
    second = await client.get("/api/frontend?userId=42", headers=frontend_headers)

    toggle = first.json()["toggles"][0]
    assert toggle["impressionData"] is True
    assert toggle["variant"]["enabled"] is True
    assert toggle["variant"]["name"] in {"blue", "red"}
    assert second.json()["toggles"][0]["variant"] == toggle["variant"]
    if toggle["variant"]["name"] == "blue":
        assert toggle["variant"]["payload"] == {"type": "string", "value": "#00f"}
    else:
        assert "payload" not in toggle["variant"]
