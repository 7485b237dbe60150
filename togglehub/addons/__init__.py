"""
Addon providers.

An addon instance is a stored configuration (provider name, parameters,
subscribed event types). Providers turn a stored event into an outgoing
call.
"""

from togglehub.addons.base import AddonProvider, event_payload
from togglehub.addons.webhook import WebhookAddon

PROVIDERS: dict[str, type[AddonProvider]] = {
    WebhookAddon.name: WebhookAddon,
}


def get_provider(name: str, **config) -> AddonProvider:
    """Instantiate a provider by name. Raises KeyError for unknown providers."""
    return PROVIDERS[name](**config)


__all__ = [
    "AddonProvider",
    "WebhookAddon",
    "PROVIDERS",
    "get_provider",
    "event_payload",
]
