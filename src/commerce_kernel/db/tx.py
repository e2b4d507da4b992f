# commerce_kernel/db/tx.py
"""
Transaction coordination for service methods
──────────────────────────────────────────────
TransactionCoordinator.run() executes a unit of work inside one
physical database transaction:

    • no transaction_manager  → open a session, begin, own commit/rollback
    • transaction_manager=tm  → join tm, never commit or roll back
    • any failure             → optional error_handler, then re-raise;
                                a failed joined run marks the
                                transaction rollback-only; the
                                outermost run rolls back

Joining is explicit. A nested run() that does not forward the
ancestor handle opens an unrelated second transaction.
──────────────────────────────────────────────
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commerce_kernel.errors import ErrorType, KernelError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ErrorHandler = Callable[[Exception], Any]
AfterCommit = Callable[[], Any]

# Bookkeeping stored on Session.info of coordinator-owned sessions
_DEPTH_KEY = "commerce_kernel.tx_depth"
_AFTER_COMMIT_KEY = "commerce_kernel.after_commit"
_ROLLBACK_ONLY_KEY = "commerce_kernel.rollback_only"


@dataclass
class TransactionContext:
    """What a unit of work sees: the handle plus its nesting position."""

    transaction_manager: AsyncSession
    depth: int = 0
    error_handler: Optional[ErrorHandler] = None

    @property
    def is_outermost(self) -> bool:
        return self.depth == 0

    def after_commit(self, callback: AfterCommit) -> bool:
        return defer_until_commit(self.transaction_manager, callback)


UnitOfWork = Callable[[TransactionContext], Awaitable[T]]


def defer_until_commit(session: AsyncSession, callback: AfterCommit) -> bool:
    """
    Queue `callback` to run after the outermost commit of `session`.
    Returns False when the session was not opened by a coordinator.
    """
    pending: Optional[List[AfterCommit]] = session.info.get(_AFTER_COMMIT_KEY)
    if pending is None:
        return False
    pending.append(callback)
    return True


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class TransactionCoordinator:
    """Runs units of work in one physical transaction per call chain."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def run(
        self,
        work: UnitOfWork[T],
        *,
        transaction_manager: Optional[AsyncSession] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> T:
        if transaction_manager is not None:
            return await self._run_joined(work, transaction_manager, error_handler)
        return await self._run_outermost(work, error_handler)

    # ──────────────────────────────────────────────
    # Outermost invocation: owns the physical transaction
    # ──────────────────────────────────────────────
    async def _run_outermost(self, work: UnitOfWork[T], error_handler: Optional[ErrorHandler]) -> T:
        async with self.session_factory() as session:
            session.info[_DEPTH_KEY] = 0
            session.info[_AFTER_COMMIT_KEY] = []
            session.info[_ROLLBACK_ONLY_KEY] = False
            await session.begin()
            logger.debug("tx begin", session=id(session))

            ctx = TransactionContext(session, depth=0, error_handler=error_handler)
            try:
                result = await self._invoke(work, ctx)
                if session.info.get(_ROLLBACK_ONLY_KEY):
                    # a joined unit failed and its error was caught above it
                    raise KernelError(ErrorType.UNEXPECTED_STATE, "Transaction marked rollback-only")
            except BaseException as exc:
                session.info.pop(_AFTER_COMMIT_KEY, None)
                await session.rollback()
                logger.info("tx rolled back", session=id(session), error=type(exc).__name__, detail=str(exc))
                raise

            await session.commit()
            callbacks = session.info.pop(_AFTER_COMMIT_KEY, [])
            logger.debug("tx commit", session=id(session))

        await self._fire_after_commit(callbacks)
        return result

    # ──────────────────────────────────────────────
    # Joined invocation: reuse the ancestor's handle
    # ──────────────────────────────────────────────
    async def _run_joined(
        self,
        work: UnitOfWork[T],
        session: AsyncSession,
        error_handler: Optional[ErrorHandler],
    ) -> T:
        had_depth = _DEPTH_KEY in session.info
        parent_depth = session.info.get(_DEPTH_KEY, 0)
        depth = parent_depth + 1
        session.info[_DEPTH_KEY] = depth
        logger.debug("tx join", session=id(session), depth=depth)
        try:
            return await self._invoke(work, TransactionContext(session, depth=depth, error_handler=error_handler))
        except BaseException:
            session.info[_ROLLBACK_ONLY_KEY] = True
            raise
        finally:
            if had_depth:
                session.info[_DEPTH_KEY] = parent_depth
            else:
                session.info.pop(_DEPTH_KEY, None)

    @staticmethod
    async def _invoke(work: UnitOfWork[T], ctx: TransactionContext) -> T:
        try:
            return await work(ctx)
        except Exception as exc:
            if ctx.error_handler is not None:
                # a raising handler replaces exc
                await _maybe_await(ctx.error_handler(exc))
            raise

    @staticmethod
    async def _fire_after_commit(callbacks: List[AfterCommit]) -> None:
        # The transaction is durable at this point; failures must not surface from run().
        for callback in callbacks:
            try:
                await _maybe_await(callback())
            except Exception:
                logger.exception("after-commit callback failed", callback=repr(callback))


def transactional(fn):
    """
    Wraps async service methods in coordinator.run().

    The service must expose `self.coordinator`. Callers may pass
    `transaction_manager=` to join an enclosing transaction; the
    wrapped method always receives the active handle under that name.
    """
    @wraps(fn)
    async def wrapper(self, *args, transaction_manager: Optional[AsyncSession] = None, **kwargs):
        async def work(ctx: TransactionContext):
            return await fn(self, *args, transaction_manager=ctx.transaction_manager, **kwargs)

        return await self.coordinator.run(work, transaction_manager=transaction_manager)
    return wrapper
