"""
Client metrics and registration repositories.

All writes are single-statement upserts so concurrent posts for the
same (feature, environment, hour) never lose updates.
"""

from dataclasses import dataclass
from datetime import datetime
from sqlalchemy import select

from togglehub.models.client_metrics import (
    ClientMetricsHourly,
    FeatureSeenApplication,
    ClientApplication,
    ClientInstance,
)

from .base import BaseRepository


@dataclass
class HourlyUsage:
    """One hourly aggregate row, detached from the ORM session."""
    environment: str
    timestamp: datetime
    yes: int
    no: int


class ClientMetricsRepository(BaseRepository[ClientMetricsHourly]):
    model = ClientMetricsHourly

    async def increment(
        self,
        feature_name: str,
        environment: str,
        timestamp: datetime,
        yes: int,
        no: int,
    ) -> None:
        """Add yes/no counts to an hourly bucket, creating it if missing."""
        stmt = self._insert().values(
            feature_name=feature_name,
            environment=environment,
            timestamp=timestamp,
            yes_count=yes,
            no_count=no,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["feature_name", "environment", "timestamp"],
            set_={
                "yes_count": ClientMetricsHourly.yes_count + stmt.excluded.yes_count,
                "no_count": ClientMetricsHourly.no_count + stmt.excluded.no_count,
            },
        )
        await self.db.execute(stmt)

    async def usage_since(self, feature_name: str, since: datetime) -> list[HourlyUsage]:
        """Hourly aggregates for a feature at or after `since`."""
        # Plain columns, not entities: the identity map must not serve
        # stale counts after an upsert in the same session.
        stmt = (
            select(
                ClientMetricsHourly.environment,
                ClientMetricsHourly.timestamp,
                ClientMetricsHourly.yes_count,
                ClientMetricsHourly.no_count,
            )
            .where(
                ClientMetricsHourly.feature_name == feature_name,
                ClientMetricsHourly.timestamp >= since,
            )
            .order_by(ClientMetricsHourly.timestamp, ClientMetricsHourly.environment)
        )
        result = await self.db.execute(stmt)
        return [HourlyUsage(*row) for row in result.all()]


class SeenApplicationRepository(BaseRepository[FeatureSeenApplication]):
    model = FeatureSeenApplication

    async def mark_seen(self, feature_name: str, app_name: str, seen_at: datetime) -> None:
        stmt = self._insert().values(
            feature_name=feature_name,
            app_name=app_name,
            last_seen=seen_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["feature_name", "app_name"],
            set_={"last_seen": stmt.excluded.last_seen},
        )
        await self.db.execute(stmt)

    async def app_names_for(self, feature_name: str) -> list[str]:
        stmt = (
            select(FeatureSeenApplication.app_name)
            .where(FeatureSeenApplication.feature_name == feature_name)
            .order_by(FeatureSeenApplication.app_name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class ClientApplicationRepository(BaseRepository[ClientApplication]):
    model = ClientApplication

    async def upsert(
        self,
        app_name: str,
        strategies: list[str],
        description: str | None,
        seen_at: datetime,
    ) -> None:
        stmt = self._insert().values(
            app_name=app_name,
            strategies=strategies,
            description=description,
            last_seen=seen_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["app_name"],
            set_={
                "strategies": stmt.excluded.strategies,
                "last_seen": stmt.excluded.last_seen,
            },
        )
        await self.db.execute(stmt)


class ClientInstanceRepository(BaseRepository[ClientInstance]):
    model = ClientInstance

    async def upsert(
        self,
        app_name: str,
        instance_id: str,
        environment: str,
        sdk_version: str | None,
        interval: int | None,
        started: datetime | None,
        seen_at: datetime,
    ) -> None:
        stmt = self._insert().values(
            app_name=app_name,
            instance_id=instance_id,
            environment=environment,
            sdk_version=sdk_version,
            interval_ms=interval,
            started=started,
            last_seen=seen_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["app_name", "instance_id", "environment"],
            set_={
                "sdk_version": stmt.excluded.sdk_version,
                "interval_ms": stmt.excluded.interval_ms,
                "started": stmt.excluded.started,
                "last_seen": stmt.excluded.last_seen,
            },
        )
        await self.db.execute(stmt)
