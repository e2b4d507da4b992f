# commerce_kernel/events/bus.py
"""
In-process event bus
──────────────────────────────────────────────
emit(name, data) calls every subscriber of `name` with (data, name).

When emit() receives a coordinator-owned transaction_manager the
dispatch is queued on that transaction and runs only after the
outermost commit. A rollback drops the queue, so subscribers never
see effects that were not persisted.
──────────────────────────────────────────────
"""
from __future__ import annotations

import inspect
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_kernel.db.tx import defer_until_commit

logger = structlog.get_logger(__name__)

Subscriber = Callable[[Any, str], Any]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, event_name: str, subscriber: Subscriber) -> None:
        self._subscribers[event_name].append(subscriber)

    def unsubscribe(self, event_name: str, subscriber: Subscriber) -> None:
        try:
            self._subscribers[event_name].remove(subscriber)
        except ValueError:
            raise KeyError(f"Subscriber not registered for {event_name}") from None

    async def emit(
        self,
        event_name: str,
        data: Any,
        *,
        transaction_manager: Optional[AsyncSession] = None,
    ) -> None:
        if transaction_manager is not None:
            queued = defer_until_commit(
                transaction_manager, lambda: self._dispatch(event_name, data)
            )
            if queued:
                logger.debug("event deferred until commit", event_name=event_name)
                return
        await self._dispatch(event_name, data)

    async def _dispatch(self, event_name: str, data: Any) -> None:
        for subscriber in list(self._subscribers.get(event_name, ())):
            try:
                result = subscriber(data, event_name)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # keep dispatching to the rest
                logger.exception("subscriber failed", subscriber=repr(subscriber), event_name=event_name)
