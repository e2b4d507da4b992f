# commerce_kernel/services/base_service.py
"""
Base class for all domain services
──────────────────────────────────────────────
Responsibilities:
    • Hold the TransactionCoordinator (used by @transactional)
    • Hold the EventBus for domain events
    • Provide read sessions that reuse a caller's transaction
──────────────────────────────────────────────
"""
from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_kernel.db.tx import TransactionCoordinator
from commerce_kernel.events.bus import EventBus


class BaseService:
    """
    Base class for all services.

    Every public method takes an optional `transaction_manager`
    and forwards it, so one service can call another inside the
    caller's transaction.
    """

    def __init__(self, *, coordinator: TransactionCoordinator, event_bus: Optional[EventBus] = None):
        self.coordinator = coordinator
        self.event_bus = event_bus or EventBus()

    @asynccontextmanager
    async def session_scope(
        self, transaction_manager: Optional[AsyncSession] = None
    ) -> AsyncIterator[AsyncSession]:
        """
        Yield the caller's handle when given, otherwise a short-lived
        read session closed on exit (never committed).
        """
        if transaction_manager is not None:
            yield transaction_manager
            return
        async with self.coordinator.session_factory() as sess:
            yield sess
