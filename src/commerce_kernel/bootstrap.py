# src/commerce_kernel/bootstrap.py
"""
──────────────────────────────────────────────────────────────
commerce_kernel.bootstrap
──────────────────────────────────────────────────────────────
Purpose:
    One place that wires settings, logging, the DB engine,
    the transaction coordinator, the event bus, feature flags
    and the domain services.

Usage:
    kernel = build_kernel()
    await kernel.currencies.update("usd", UpdateCurrencyInput(includes_tax=True))
    await kernel.shutdown()
──────────────────────────────────────────────────────────────
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commerce_kernel.config.base_settings import KernelSettings, get_settings
from commerce_kernel.config.flags import FeatureFlagRouter
from commerce_kernel.config.log_config import configure_logging
from commerce_kernel.db.engine import current_engine, dispose_engine, ensure_engine, get_sessionmaker
from commerce_kernel.db.tx import TransactionCoordinator
from commerce_kernel.events.bus import EventBus
from commerce_kernel.services.currency import CurrencyService

logger = structlog.get_logger(__name__)


@dataclass
class Kernel:
    settings: KernelSettings
    coordinator: TransactionCoordinator
    event_bus: EventBus
    flags: FeatureFlagRouter
    currencies: CurrencyService
    owns_engine: bool = False

    async def shutdown(self) -> None:
        # injected factories and engines created elsewhere belong to their creator
        if self.owns_engine:
            await dispose_engine()


def build_kernel(
    settings: Optional[KernelSettings] = None,
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> Kernel:
    """
    Build a wired Kernel. Pass `session_factory` to bypass the global
    engine (tests, embedding in another app).
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    owns_engine = False
    if session_factory is None:
        owns_engine = current_engine() is None
        ensure_engine(settings)
        session_factory = get_sessionmaker()

    coordinator = TransactionCoordinator(session_factory)
    event_bus = EventBus()
    flags = FeatureFlagRouter.from_settings(settings)

    kernel = Kernel(
        settings=settings,
        coordinator=coordinator,
        event_bus=event_bus,
        flags=flags,
        currencies=CurrencyService(coordinator=coordinator, event_bus=event_bus, flags=flags),
        owns_engine=owns_engine,
    )
    logger.info("kernel ready", app=settings.app_name, flags=flags.list_flags())
    return kernel
