"""
Feature toggle models.

Tables:
- features: Toggle definitions (the integer id defines insertion order)
- feature_environments: Per-environment enabled flag
- feature_strategies: Activation strategies per environment
"""

from datetime import datetime
from uuid import UUID, uuid4
from sqlalchemy import String, Integer, Boolean, Text, ForeignKey, DateTime, Uuid, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, JSONType


class FeatureToggle(Base):
    """Feature toggle definition."""

    __tablename__ = "features"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    project: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(50), default="release", nullable=False)
    stale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    impression_data: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # [{"name": "blue", "weight": 500, "stickiness": "default", "payload": {...}}]
    variants: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)

    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    environments: Mapped[list["FeatureEnvironment"]] = relationship(
        back_populates="feature",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    strategies: Mapped[list["FeatureStrategy"]] = relationship(
        back_populates="feature",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FeatureStrategy.sort_order",
    )

    def __repr__(self) -> str:
        return f"<FeatureToggle {self.name} ({self.project})>"

    def is_enabled_in(self, environment: str) -> bool:
        return any(e.enabled for e in self.environments if e.environment == environment)

    def strategies_in(self, environment: str) -> list["FeatureStrategy"]:
        return [s for s in self.strategies if s.environment == environment]


class FeatureEnvironment(Base):
    """Enabled flag of a toggle in one environment."""

    __tablename__ = "feature_environments"

    feature_name: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("features.name", ondelete="CASCADE"),
        primary_key=True,
    )
    environment: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("environments.name", ondelete="CASCADE"),
        primary_key=True,
    )
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    feature: Mapped[FeatureToggle] = relationship(back_populates="environments")

    def __repr__(self) -> str:
        status = "ON" if self.enabled else "OFF"
        return f"<FeatureEnvironment {self.feature_name}@{self.environment} [{status}]>"


class FeatureStrategy(Base):
    """Activation strategy of a toggle in one environment."""

    __tablename__ = "feature_strategies"
    __table_args__ = (
        Index("idx_feature_strategies_feature_env", "feature_name", "environment"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    feature_name: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("features.name", ondelete="CASCADE"),
        nullable=False,
    )
    project: Mapped[str] = mapped_column(String(100), nullable=False)
    environment: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("environments.name", ondelete="CASCADE"),
        nullable=False,
    )
    strategy_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Validated at the API boundary (schemas.feature), stored as plain JSON
    parameters: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    constraints: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)

    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    feature: Mapped[FeatureToggle] = relationship(back_populates="strategies")

    def __repr__(self) -> str:
        return f"<FeatureStrategy {self.strategy_name} on {self.feature_name}@{self.environment}>"
