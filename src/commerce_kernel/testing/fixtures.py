"""
──────────────────────────────────────────────────────────────────────────────
commerce_kernel.testing.fixtures
──────────────────────────────────────────────────────────────────────────────
Purpose:
    Provide reusable pytest fixtures for kernel-based applications.

Exports:
    - engine           → AsyncEngine on a per-test SQLite file, schema created
    - session_factory  → async_sessionmaker bound to that engine
    - coordinator      → TransactionCoordinator over session_factory
    - tx_log           → records begin/commit/rollback seen by the engine

Usage in your conftest:
    from commerce_kernel.testing import engine, session_factory, coordinator, tx_log
──────────────────────────────────────────────────────────────────────────────
"""

from typing import List

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from commerce_kernel.db.base import Base
from commerce_kernel.db.tx import TransactionCoordinator
import commerce_kernel.models.currency  # noqa: F401  (registers tables on Base)


class TransactionLog:
    """Engine-level transaction events, in order."""

    def __init__(self) -> None:
        self.events: List[str] = []

    def count(self, name: str) -> int:
        return self.events.count(name)

    def snapshot(self) -> List[str]:
        return list(self.events)

    def clear(self) -> None:
        self.events.clear()


# ──────────────────────────────────────────────────────────────
# Engine Fixture (per test)
# ──────────────────────────────────────────────────────────────
@pytest.fixture()
async def engine(tmp_path):
    """
    Per-test SQLite file (not :memory:, which would give every
    pooled connection its own database).
    """
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'kernel.db'}"
    eng = create_async_engine(db_url, echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture()
def coordinator(session_factory):
    return TransactionCoordinator(session_factory)


# ──────────────────────────────────────────────────────────────
# Transaction event recorder
# ──────────────────────────────────────────────────────────────
@pytest.fixture()
def tx_log(engine):
    log = TransactionLog()

    def on_begin(conn):
        log.events.append("begin")

    def on_commit(conn):
        log.events.append("commit")

    def on_rollback(conn):
        log.events.append("rollback")

    sync_engine = engine.sync_engine
    listeners = [("begin", on_begin), ("commit", on_commit), ("rollback", on_rollback)]
    for name, fn in listeners:
        event.listen(sync_engine, name, fn)
    yield log
    for name, fn in listeners:
        event.remove(sync_engine, name, fn)
