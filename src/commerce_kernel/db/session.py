# commerce_kernel/db/session.py
"""
Lightweight AsyncSession context for CLI/Jobs/Tests
────────────────────────────────────────────
Creates sessions lazily using db.engine utilities.
These are plain sessions; use the TransactionCoordinator
for units of work that must be atomic.
"""
from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import text
from commerce_kernel.db.engine import get_sessionmaker


@asynccontextmanager
async def async_session(
    sm: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncIterator[AsyncSession]:
    sm = sm or get_sessionmaker()
    async with sm() as sess:
        yield sess


async def healthcheck(sm: Optional[async_sessionmaker[AsyncSession]] = None) -> bool:
    async with async_session(sm) as s:
        await s.execute(text("SELECT 1"))
    return True
