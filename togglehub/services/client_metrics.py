"""
Client registration and metrics aggregation.

Posted buckets are merged into hourly aggregates keyed by
(feature, environment, start of hour). Merging is a database-side
increment, so buckets may arrive in any order and from any number of
instances. Re-posting a bucket counts it twice.
"""

from datetime import timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.core.config import MetricsSettings
from togglehub.core.errors import BadRequestError
from togglehub.repositories.client_metrics import (
    ClientApplicationRepository,
    ClientInstanceRepository,
    ClientMetricsRepository,
    HourlyUsage,
    SeenApplicationRepository,
)
from togglehub.schemas.client_metrics import (
    ClientMetrics,
    ClientRegistration,
    FeatureUsageRawResponse,
    FeatureUsageResponse,
    HourlyUsageResponse,
)
from togglehub.utils.timezone import hours_ago, start_of_hour, to_iso8601, utc_now

logger = structlog.get_logger()


def _usage_view(rows: list[HourlyUsage]) -> list[HourlyUsageResponse]:
    return [
        HourlyUsageResponse(
            environment=row.environment,
            timestamp=to_iso8601(row.timestamp),
            yes=row.yes,
            no=row.no,
        )
        for row in rows
    ]


class ClientMetricsService:
    """Client registry and metrics aggregator."""

    def __init__(self, db: AsyncSession, metrics_settings: MetricsSettings | None = None):
        self.db = db
        self.metrics = ClientMetricsRepository(db)
        self.seen_applications = SeenApplicationRepository(db)
        self.applications = ClientApplicationRepository(db)
        self.instances = ClientInstanceRepository(db)
        self.settings = metrics_settings or MetricsSettings()

    # ============================================================
    # WRITE SIDE
    # ============================================================

    async def register(self, registration: ClientRegistration, environment: str) -> None:
        """Record an application and one of its SDK instances."""
        now = utc_now()
        await self.applications.upsert(
            app_name=registration.app_name,
            strategies=registration.strategies,
            description=registration.description,
            seen_at=now,
        )
        await self.instances.upsert(
            app_name=registration.app_name,
            instance_id=registration.instance_id,
            environment=environment,
            sdk_version=registration.sdk_version,
            interval=registration.interval,
            started=registration.started,
            seen_at=now,
        )
        logger.info(
            "client_registered",
            app_name=registration.app_name,
            instance_id=registration.instance_id,
            environment=environment,
        )

    async def ingest(self, payload: ClientMetrics, environment: str) -> int:
        """
        Merge one bucket into the hourly aggregates.

        Returns the number of toggles the bucket reported on.
        """
        bucket = payload.bucket
        if bucket.stop < bucket.start:
            raise BadRequestError("Metrics bucket stops before it starts")

        hour = start_of_hour(bucket.start)
        now = utc_now()
        for feature_name, counts in bucket.toggles.items():
            await self.metrics.increment(
                feature_name=feature_name,
                environment=environment,
                timestamp=hour,
                yes=counts.yes,
                no=counts.no,
            )
            await self.seen_applications.mark_seen(feature_name, payload.app_name, now)

        logger.info(
            "client_metrics_ingested",
            app_name=payload.app_name,
            environment=environment,
            toggles=len(bucket.toggles),
        )
        return len(bucket.toggles)

    # ============================================================
    # READ SIDE
    # ============================================================

    async def feature_usage(self, feature_name: str) -> FeatureUsageResponse:
        """Usage over the last hour plus every application that ever reported."""
        since = utc_now() - timedelta(minutes=self.settings.last_hour_window_minutes)
        rows = await self.metrics.usage_since(feature_name, since)
        return FeatureUsageResponse(
            feature_name=feature_name,
            last_hour_usage=_usage_view(rows),
            seen_applications=await self.seen_applications.app_names_for(feature_name),
        )

    async def feature_usage_raw(self, feature_name: str, hours_back: int = 1) -> FeatureUsageRawResponse:
        if not 1 <= hours_back <= self.settings.max_hours_back:
            raise BadRequestError(
                f"hoursBack must be between 1 and {self.settings.max_hours_back}"
            )
        rows = await self.metrics.usage_since(feature_name, start_of_hour(hours_ago(hours_back)))
        return FeatureUsageRawResponse(
            feature_name=feature_name,
            hours_back=hours_back,
            data=_usage_view(rows),
        )
