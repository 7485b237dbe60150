"""
Client metrics and registration models.

Tables:
- client_metrics_hourly: yes/no counts per feature, environment and hour
- feature_seen_applications: applications that ever reported a feature
- client_applications: registered applications
- client_instances: registered SDK instances
"""

from datetime import datetime
from sqlalchemy import String, Integer, BigInteger, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, JSONType

# BIGINT on PostgreSQL, INTEGER on SQLite (keeps rowid semantics out of the way)
CounterType = BigInteger().with_variant(Integer(), "sqlite")


class ClientMetricsHourly(Base):
    """
    Hourly aggregate of toggle evaluations.

    Only ever incremented through an INSERT ... ON CONFLICT DO UPDATE,
    see repositories.client_metrics.
    """

    __tablename__ = "client_metrics_hourly"

    feature_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    environment: Mapped[str] = mapped_column(String(100), primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)

    yes_count: Mapped[int] = mapped_column(CounterType, default=0, nullable=False)
    no_count: Mapped[int] = mapped_column(CounterType, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ClientMetricsHourly {self.feature_name}@{self.environment} "
            f"{self.timestamp} yes={self.yes_count} no={self.no_count}>"
        )


class FeatureSeenApplication(Base):
    """An application that has reported metrics for a feature."""

    __tablename__ = "feature_seen_applications"

    feature_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    app_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class ClientApplication(Base, TimestampMixin):
    """Registered client application."""

    __tablename__ = "client_applications"

    app_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    strategies: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    last_seen: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ClientInstance(Base):
    """Registered SDK instance of a client application."""

    __tablename__ = "client_instances"

    app_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    instance_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    environment: Mapped[str] = mapped_column(String(100), primary_key=True)
    sdk_version: Mapped[str | None] = mapped_column(String(255), nullable=True)
    interval_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    started: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
