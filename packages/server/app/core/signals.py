"""
Commit-completion hooks.

Domain operations queue a ``DomainSignal`` for every event row they write.
Signals are handed to the registered hooks only after the outermost
transaction commits; rolled-back work never produces a signal.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

log = structlog.get_logger()

EVENT_CREATED = "event.created"
EVENT_UPDATED = "event.updated"

_PENDING_KEY = "mosaic.pending_signals"


@dataclass(frozen=True)
class DomainSignal:
    name: str
    event_id: uuid.UUID
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "payload": self.payload,
        }


CommitHook = Callable[[list[DomainSignal]], Awaitable[None]]

_hooks: list[CommitHook] = []


def on_commit(hook: CommitHook) -> CommitHook:
    """Register a hook. Usable as a decorator."""
    if hook not in _hooks:
        _hooks.append(hook)
    return hook


def remove_hook(hook: CommitHook) -> None:
    if hook in _hooks:
        _hooks.remove(hook)


def queue_signals(session: AsyncSession, signals: list[DomainSignal]) -> None:
    session.info.setdefault(_PENDING_KEY, []).extend(signals)


def discard_pending(session: AsyncSession) -> None:
    session.info.pop(_PENDING_KEY, None)


async def dispatch_pending(session: AsyncSession) -> None:
    """Deliver signals queued on ``session`` to every hook, then clear them."""
    signals = session.info.pop(_PENDING_KEY, [])
    if not signals:
        return
    for hook in list(_hooks):
        try:
            await hook(list(signals))
        except Exception:
            log.exception("signals.hook_failed", hook=getattr(hook, "__name__", repr(hook)))
