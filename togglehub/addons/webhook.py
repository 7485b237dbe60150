"""
Webhook addon: POSTs events to a configured URL.
"""

import json
from typing import Any

import structlog
from jinja2.sandbox import SandboxedEnvironment

from togglehub.models.event import Event
from togglehub.schemas.addon import WebhookParameters

from .base import AddonProvider, event_payload

logger = structlog.get_logger()

# Templates come from admins; render them sandboxed, no HTML escaping.
_templates = SandboxedEnvironment(autoescape=False)


def render_body(body_template: str | None, payload: dict[str, Any]) -> str:
    """Render the body template with `event` in scope, or dump the event as JSON."""
    if body_template and len(body_template) > 1:
        return _templates.from_string(body_template).render(event=payload)
    return json.dumps(payload)


def parse_custom_headers(custom_headers: str | None) -> dict[str, str]:
    """Parse the customHeaders JSON object. Invalid JSON is logged and ignored."""
    if not custom_headers or len(custom_headers) <= 1:
        return {}
    try:
        headers = json.loads(custom_headers)
    except json.JSONDecodeError:
        logger.warning(
            "Could not parse the json in the customHeaders parameter",
            custom_headers=custom_headers,
        )
        return {}
    if not isinstance(headers, dict):
        logger.warning(
            "customHeaders must be a JSON object",
            custom_headers=custom_headers,
        )
        return {}
    return {str(k): str(v) for k, v in headers.items()}


def build_headers(params: WebhookParameters) -> dict[str, str]:
    headers = {"Content-Type": params.content_type or "application/json"}
    if params.authorization:
        headers["Authorization"] = params.authorization
    headers.update(parse_custom_headers(params.custom_headers))
    return headers


class WebhookAddon(AddonProvider):
    """Webhook provider."""

    name = "webhook"

    async def handle_event(self, event: Event, parameters: dict[str, Any]) -> None:
        params = WebhookParameters.model_validate(parameters)
        body = render_body(params.body_template, event_payload(event))

        response = await self.fetch_retry(
            str(params.url),
            content=body,
            headers=build_headers(params),
        )

        status = response.status_code if response is not None else None
        logger.info(
            f'Handled event "{event.type}". Status code: {status}',
            event_id=event.id,
            event_type=event.type,
        )
