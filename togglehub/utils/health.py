"""Health check utilities for /health/detailed."""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.models.feature import FeatureToggle

logger = structlog.get_logger()


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    details: dict = field(default_factory=dict)


@dataclass
class SystemHealth:
    status: HealthStatus
    version: str
    environment: str
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "components": {
                c.name: {
                    "status": c.status.value,
                    "latency_ms": c.latency_ms,
                    "message": c.message,
                    **c.details,
                }
                for c in self.components
            },
        }


async def check_database(db: AsyncSession, slow_ms: float = 100) -> ComponentHealth:
    """Check database connectivity and latency."""
    start = time.time()
    try:
        await db.execute(text("SELECT 1"))
        latency = (time.time() - start) * 1000
        slow = latency >= slow_ms
        return ComponentHealth(
            name="database",
            status=HealthStatus.DEGRADED if slow else HealthStatus.HEALTHY,
            latency_ms=round(latency, 2),
            message="Slow response" if slow else "Connected",
        )
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            message=str(e)[:100],
        )


async def check_toggle_store(db: AsyncSession) -> ComponentHealth:
    """Check that toggle definitions can be read."""
    try:
        count = await db.scalar(select(func.count()).select_from(FeatureToggle))
        return ComponentHealth(
            name="toggles",
            status=HealthStatus.HEALTHY,
            details={"count": count or 0},
        )
    except Exception as e:
        logger.error("Toggle store health check failed", error=str(e))
        return ComponentHealth(
            name="toggles",
            status=HealthStatus.UNHEALTHY,
            message=str(e)[:100],
        )


class HealthChecker:
    """
    Runs named health checks concurrently.

    Usage:
        checker = HealthChecker(version="0.1.0", environment="production")
        checker.add_check("database", lambda: check_database(db))

        health = await checker.run()
    """

    def __init__(self, version: str, environment: str):
        self.version = version
        self.environment = environment
        self.checks: dict[str, Callable[[], Awaitable[ComponentHealth]]] = {}

    def add_check(self, name: str, check_fn: Callable[[], Awaitable[ComponentHealth]]) -> None:
        self.checks[name] = check_fn

    async def run(self) -> SystemHealth:
        results = await asyncio.gather(
            *[check() for check in self.checks.values()],
            return_exceptions=True,
        )

        components = []
        for name, result in zip(self.checks.keys(), results):
            if isinstance(result, Exception):
                components.append(ComponentHealth(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=str(result)[:100],
                ))
            else:
                components.append(result)

        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY

        return SystemHealth(
            status=overall,
            version=self.version,
            environment=self.environment,
            components=components,
        )
