"""
Base class for addon providers.
"""

import asyncio
from typing import Any

import httpx
import structlog

from togglehub.models.event import Event
from togglehub.utils.timezone import to_iso8601

logger = structlog.get_logger()


def event_payload(event: Event) -> dict[str, Any]:
    """JSON-ready representation of an event, as sent to addons."""
    return {
        "id": event.id,
        "type": event.type,
        "createdBy": event.created_by,
        "createdAt": to_iso8601(event.created_at),
        "project": event.project,
        "featureName": event.feature_name,
        "environment": event.environment,
        "data": event.data,
        "preData": event.pre_data,
    }


class AddonProvider:
    """
    Delivers events for one provider type.

    Subclasses implement handle_event(); fetch_retry() gives them an
    HTTP POST that retries network errors and 5xx responses.
    """

    name: str = ""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.transport = transport

    async def handle_event(self, event: Event, parameters: dict[str, Any]) -> None:
        raise NotImplementedError

    async def fetch_retry(
        self,
        url: str,
        *,
        content: str,
        headers: dict[str, str],
    ) -> httpx.Response | None:
        """
        POST with retries.

        Returns the last response (which may still be a 5xx), or None if
        every attempt failed at the network level.
        """
        response = None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(self.max_retries + 1):
                try:
                    response = await client.post(url, content=content, headers=headers)
                    if response.status_code < 500:
                        return response
                    logger.warning(
                        "addon_delivery_server_error",
                        provider=self.name,
                        url=url,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                    )
                except httpx.RequestError as e:
                    logger.warning(
                        "addon_delivery_failed",
                        provider=self.name,
                        url=url,
                        error=str(e)[:500],
                        attempt=attempt + 1,
                    )

                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_backoff * (2 ** attempt))

        return response
