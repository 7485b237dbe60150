"""
Event model.

Every admin mutation stores an event; addons subscribe to event types.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import String, Integer, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType


class EventType(str, Enum):
    """Stored event types."""
    FEATURE_CREATED = "feature-created"
    FEATURE_DELETED = "feature-deleted"
    FEATURE_ENVIRONMENT_ENABLED = "feature-environment-enabled"
    FEATURE_ENVIRONMENT_DISABLED = "feature-environment-disabled"
    FEATURE_STRATEGY_ADD = "feature-strategy-add"
    FEATURE_STRATEGY_REMOVE = "feature-strategy-remove"
    FEATURE_VARIANTS_UPDATED = "feature-variants-updated"
    PROJECT_CREATED = "project-created"
    ENVIRONMENT_CREATED = "environment-created"
    API_TOKEN_CREATED = "api-token-created"
    API_TOKEN_DELETED = "api-token-deleted"
    ADDON_CONFIG_CREATED = "addon-config-created"
    ADDON_CONFIG_DELETED = "addon-config-deleted"


class Event(Base):
    """Stored event."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    project: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    feature_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    environment: Mapped[str | None] = mapped_column(String(100), nullable=True)

    data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    pre_data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<Event {self.id} {self.type}>"
