"""
Generic Repository Base
────────────────────────────────────────────
Focus:
    • CRUD operations on the session it was constructed with
    • Construct one per unit of work: Repo(ctx.transaction_manager)
    • Query helpers (first_where, exists_where, find_and_count)
────────────────────────────────────────────
"""
from __future__ import annotations

from typing import TypeVar, Generic, Type, Optional, Sequence, Any, Tuple, List
from sqlalchemy import select, update, delete, func, inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class RepoBase(Generic[T]):
    """Generic repository providing async CRUD + query helpers."""

    # Each subclass must set this:
    model: Optional[Type[T]] = None

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if cls.model is None:
            raise RuntimeError(f"{cls.__name__} must define class attr `model`")

    def __init__(self, session: AsyncSession):
        self.session: AsyncSession = session

    @property
    def _pk(self):
        return sa_inspect(self.model).primary_key[0]

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    async def get(self, id_: Any) -> Optional[T]:
        return await self.session.get(self.model, id_)

    async def list(
        self, *, where=None, order_by=None, limit: Optional[int] = None, offset: int = 0
    ) -> Sequence[T]:
        stmt = self._select(where, order_by)
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)

        res = await self.session.execute(stmt)
        return res.scalars().all()

    async def create(self, **values) -> T:
        obj = self.model(**values)
        self.session.add(obj)
        await self.session.flush()  # surface constraint errors now
        return obj

    async def save(self, obj: T) -> T:
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def update(self, id_: Any, **values) -> int:
        res = await self.session.execute(
            update(self.model).where(self._pk == id_).values(**values)
        )
        return int(res.rowcount or 0)

    async def delete(self, id_: Any) -> int:
        res = await self.session.execute(delete(self.model).where(self._pk == id_))
        return int(res.rowcount or 0)

    async def count(self, where=None) -> int:
        stmt = select(func.count()).select_from(self.model)
        for cond in _as_list(where):
            stmt = stmt.where(cond)
        res = await self.session.execute(stmt)
        return int(res.scalar_one())

    # ------------------------------------------------------------------
    # Extended helpers
    # ------------------------------------------------------------------
    async def first_where(self, where) -> Optional[T]:
        stmt = self._select(where, None).limit(1)
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()

    async def exists_where(self, where) -> bool:
        return (await self.first_where(where)) is not None

    async def find_and_count(
        self, *, where=None, order_by=None, skip: int = 0, take: Optional[int] = 20
    ) -> Tuple[List[T], int]:
        rows = await self.list(where=where, order_by=order_by, limit=take, offset=skip)
        return list(rows), await self.count(where)

    def _select(self, where, order_by):
        stmt = select(self.model)
        for cond in _as_list(where):
            stmt = stmt.where(cond)
        order = _as_list(order_by)
        if order:
            stmt = stmt.order_by(*order)
        return stmt


def _as_list(value) -> list:
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]
