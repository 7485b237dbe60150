"""
Project and environment models.
"""

from sqlalchemy import String, Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


DEFAULT_PROJECT = "default"
DEFAULT_ENVIRONMENT = "default"


class Project(Base, TimestampMixin):
    """Project grouping feature toggles. The id is a URL-safe slug."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Project {self.id}>"


class Environment(Base, TimestampMixin):
    """Deployment environment a toggle can be enabled in."""

    __tablename__ = "environments"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    type: Mapped[str] = mapped_column(String(100), default="production", nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=9999, nullable=False)

    def __repr__(self) -> str:
        return f"<Environment {self.name}>"
