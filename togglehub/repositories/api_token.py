"""
API token repository.
"""

from datetime import datetime
from sqlalchemy import Select, select, update

from togglehub.models.api_token import ApiToken

from .base import BaseRepository


class ApiTokenRepository(BaseRepository[ApiToken]):
    model = ApiToken

    def _base_query(self) -> Select:
        return select(ApiToken).order_by(ApiToken.created_at, ApiToken.token_name)

    async def get_by_hash(self, secret_hash: str) -> ApiToken | None:
        stmt = select(ApiToken).where(ApiToken.secret_hash == secret_hash)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_seen(self, token: ApiToken, seen_at: datetime) -> None:
        """Touch seen_at without loading the row into the unit of work again."""
        await self.db.execute(
            update(ApiToken).where(ApiToken.id == token.id).values(seen_at=seen_at)
        )
