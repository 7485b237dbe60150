"""
API token model.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from togglehub.utils.timezone import utc_now, to_utc

from .base import Base, StandardMixin, JSONType


ALL = "*"


class ApiTokenType(str, Enum):
    """API token types."""
    ADMIN = "admin"         # Admin API, also accepted by client/frontend APIs
    CLIENT = "client"       # Server-side SDKs
    FRONTEND = "frontend"   # Browser/mobile SDKs, pre-evaluated toggles


class ApiToken(Base, StandardMixin):
    """API token. Only the SHA-256 hash of the secret is stored."""

    __tablename__ = "api_tokens"

    # Secret identification (prefix visible, hash stored)
    secret_prefix: Mapped[str] = mapped_column(String(255), nullable=False)
    secret_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )

    token_name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ApiTokenType] = mapped_column(
        SQLEnum(ApiTokenType, native_enum=False, length=16),
        nullable=False,
    )

    # Scope
    projects: Mapped[list[str]] = mapped_column(JSONType, default=lambda: [ALL])
    environment: Mapped[str] = mapped_column(String(100), default=ALL, nullable=False)

    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ApiToken {self.secret_prefix}*** ({self.token_name}, {self.type.value})>"

    @property
    def is_expired(self) -> bool:
        """Check if token is expired."""
        if not self.expires_at:
            return False
        return utc_now() > to_utc(self.expires_at)
