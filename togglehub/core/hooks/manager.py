"""
Hook manager for domain events.

Handlers run in two places:

- `trigger()` runs them right away, inside the caller's transaction.
- `after_commit()` queues a trigger on a session. It fires as a
  background task once that session commits and is dropped if the
  session rolls back.
"""
from __future__ import annotations

from typing import Callable, Any, Awaitable
from dataclasses import dataclass, field
from collections import defaultdict
import asyncio
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

PENDING_KEY = "togglehub.pending_hooks"


@dataclass
class Hook:
    """Registered hook information."""
    name: str
    handler: Callable[..., Awaitable[Any]]
    source: str = ""  # Module that registered this


@dataclass
class HookResult:
    """Result from running hooks."""
    hook_name: str
    results: list[Any] = field(default_factory=list)
    errors: list[tuple[str, Exception]] = field(default_factory=list)


class HookManager:
    """
    Manages hooks throughout the application.

    Hooks in use:
    - event.created: An event was stored (kwargs: event, db)
    - addon.deliver: A committed event is ready for addons (kwargs: event, targets)

    Handler errors are logged and collected on the HookResult; they never
    propagate to the caller, so a failing addon cannot fail the admin
    request that produced the event.
    """

    def __init__(self):
        self._hooks: dict[str, list[Hook]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def register(
        self,
        name: str,
        handler: Callable[..., Awaitable[Any]],
        *,
        source: str = "",
    ) -> Hook:
        """Register a hook handler."""
        hook = Hook(name=name, handler=handler, source=source)
        self._hooks[name].append(hook)
        logger.debug(f"Registered hook: {name} ({source or handler.__name__})")
        return hook

    def unregister(self, name: str, handler: Callable) -> bool:
        """Unregister a hook handler."""
        hooks = self._hooks.get(name, [])
        for i, hook in enumerate(hooks):
            if hook.handler is handler:
                del hooks[i]
                return True
        return False

    async def trigger(self, name: str, **kwargs) -> HookResult:
        """Run every handler for a hook in registration order."""
        result = HookResult(hook_name=name)

        for hook in list(self._hooks.get(name, [])):
            try:
                result.results.append(await hook.handler(**kwargs))
            except Exception as e:
                result.errors.append((hook.source or str(hook.handler), e))
                logger.error(f"Hook {name} handler error: {e}")

        return result

    def after_commit(self, session: AsyncSession, name: str, **kwargs) -> None:
        """Trigger `name` once `session` commits. Nothing runs on rollback."""
        session.info.setdefault(PENDING_KEY, []).append((self, name, kwargs))

    def _spawn(self, name: str, kwargs: dict[str, Any]) -> None:
        task = asyncio.get_running_loop().create_task(self.trigger(name, **kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every after-commit trigger that is still running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def clear(self) -> None:
        """Remove every handler."""
        self._hooks.clear()


@event.listens_for(Session, "after_commit")
def _run_pending(session: Session) -> None:
    # Releasing a savepoint also counts as a commit here
    if session.in_nested_transaction():
        return
    for manager, name, kwargs in session.info.pop(PENDING_KEY, []):
        manager._spawn(name, kwargs)


@event.listens_for(Session, "after_soft_rollback")
def _drop_pending(session: Session, previous_transaction) -> None:
    # Savepoint rollbacks keep the outer transaction and its queue
    if previous_transaction.parent is not None:
        return
    dropped = session.info.pop(PENDING_KEY, [])
    if dropped:
        logger.debug(f"Dropped {len(dropped)} pending hook(s) on rollback")


# Global hook manager instance
hooks = HookManager()
