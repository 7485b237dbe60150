"""
Addon model.
"""

from sqlalchemy import String, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, StandardMixin, JSONType


class Addon(Base, StandardMixin):
    """Configured addon instance (e.g. a webhook) subscribed to event types."""

    __tablename__ = "addons"

    provider: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Provider specific, e.g. {"url": ..., "bodyTemplate": ..., "customHeaders": "{...}"}
    parameters: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    events: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)

    def __repr__(self) -> str:
        status = "ON" if self.enabled else "OFF"
        return f"<Addon {self.provider} [{status}]>"

    def subscribes_to(self, event_type: str) -> bool:
        return self.enabled and event_type in self.events
