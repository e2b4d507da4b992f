# commerce_kernel/db/engine.py
"""
Async Engine / Session Factory Accessors
────────────────────────────────────────────
This module isolates engine/sessionmaker creation.

Used by:
    • db.session (CLI / jobs)
    • bootstrap (kernel wiring)
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, AsyncSession, create_async_engine

from commerce_kernel.config.base_settings import KernelSettings, get_settings

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


def normalize_async_url(url: str) -> str:
    """Map plain driver URLs onto their asyncio drivers."""
    if not url:
        raise RuntimeError("No DB URL provided.")
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql+psycopg2://"):
        return url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def ensure_engine(settings: Optional[KernelSettings] = None) -> AsyncEngine:
    """Create global engine lazily from settings if not yet created."""
    global _engine, _sessionmaker
    if _engine is None:
        settings = settings or get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL not set")
        url = normalize_async_url(settings.database_url)
        kwargs = {"echo": settings.echo_sql}
        if not url.startswith("sqlite"):
            kwargs["pool_pre_ping"] = True
        _engine = create_async_engine(url, **kwargs)
        _sessionmaker = async_sessionmaker(_engine, expire_on_commit=False, class_=AsyncSession)
        logger.info("db engine initialized", url=_engine.url.render_as_string(hide_password=True))
    return _engine


def current_engine() -> Optional[AsyncEngine]:
    """Return the global engine, or None if it has not been created."""
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the active async_sessionmaker (create if missing)."""
    global _sessionmaker
    if _sessionmaker is None:
        ensure_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def dispose_engine() -> None:
    """Dispose the global engine and forget the sessionmaker."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        logger.info("db engine disposed")
    _engine = None
    _sessionmaker = None
