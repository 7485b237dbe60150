"""
Hook system for domain events.
Addons subscribe to "event.created" and deliver on "addon.deliver"
once the transaction that stored the event has committed.
"""

from .manager import HookManager, Hook, HookResult, hooks

__all__ = [
    "HookManager",
    "Hook",
    "HookResult",
    "hooks",
]
