# commerce_kernel/services/currency.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_kernel.config.flags import TAX_INCLUSIVE_PRICING, FeatureFlagRouter
from commerce_kernel.db.tx import TransactionContext, TransactionCoordinator, transactional
from commerce_kernel.errors import ErrorType, KernelError
from commerce_kernel.events.bus import EventBus
from commerce_kernel.models.currency import Currency
from commerce_kernel.repos.currency import CurrencyRepo
from commerce_kernel.services.base_service import BaseService

logger = structlog.get_logger(__name__)

_FILTERABLE = {"code", "symbol", "symbol_native", "name", "includes_tax"}


class CreateCurrencyInput(BaseModel):
    code: str = Field(min_length=3, max_length=3)
    symbol: str
    symbol_native: str
    name: str
    includes_tax: bool = False


class UpdateCurrencyInput(BaseModel):
    includes_tax: Optional[bool] = None


class CurrencyService(BaseService):
    class Events:
        CREATED = "currency.created"
        UPDATED = "currency.updated"

    def __init__(
        self,
        *,
        coordinator: TransactionCoordinator,
        event_bus: Optional[EventBus] = None,
        flags: Optional[FeatureFlagRouter] = None,
    ):
        super().__init__(coordinator=coordinator, event_bus=event_bus)
        self.flags = flags or FeatureFlagRouter()

    async def retrieve_by_code(
        self, code: str, *, transaction_manager: Optional[AsyncSession] = None
    ) -> Currency:
        """
        Return the currency with the given code (case-insensitive).
        Raises KernelError(NOT_FOUND) when it does not exist.
        """
        code = code.lower()
        async with self.session_scope(transaction_manager) as session:
            currency = await CurrencyRepo(session).find_by_code(code)

        if currency is None:
            raise KernelError(ErrorType.NOT_FOUND, f"Currency with code: {code} was not found")
        return currency

    async def list_and_count(
        self,
        selector: Optional[Dict[str, Any]] = None,
        *,
        skip: int = 0,
        take: Optional[int] = 20,
        transaction_manager: Optional[AsyncSession] = None,
    ) -> Tuple[List[Currency], int]:
        """
        List currencies matching `selector` (field -> value, or list of
        values) ordered by code, plus the total count of matches.
        """
        where = _build_where(selector or {})
        async with self.session_scope(transaction_manager) as session:
            return await CurrencyRepo(session).find_and_count(
                where=where, order_by=Currency.code, skip=skip, take=take
            )

    @transactional
    async def create(
        self, data: CreateCurrencyInput, *, transaction_manager: AsyncSession
    ) -> Currency:
        repo = CurrencyRepo(transaction_manager)
        code = data.code.lower()
        if await repo.find_by_code(code) is not None:
            raise KernelError(ErrorType.DUPLICATE_ERROR, f"Currency with code: {code} already exists")

        currency = await repo.create(**data.model_dump(exclude={"code"}), code=code)
        await self.event_bus.emit(
            self.Events.CREATED, {"code": code}, transaction_manager=transaction_manager
        )
        return currency

    async def update(
        self,
        code: str,
        data: UpdateCurrencyInput,
        *,
        transaction_manager: Optional[AsyncSession] = None,
    ) -> Currency:
        async def work(ctx: TransactionContext) -> Currency:
            tm = ctx.transaction_manager
            currency = await self.retrieve_by_code(code, transaction_manager=tm)

            if self.flags.is_feature_enabled(TAX_INCLUSIVE_PRICING):
                if data.includes_tax is not None:
                    currency.includes_tax = data.includes_tax
            elif data.includes_tax is not None:
                logger.debug("includes_tax ignored", flag=TAX_INCLUSIVE_PRICING, code=code)

            await CurrencyRepo(tm).save(currency)
            await self.event_bus.emit(self.Events.UPDATED, {"code": currency.code}, transaction_manager=tm)
            return currency

        return await self.coordinator.run(work, transaction_manager=transaction_manager)


def _build_where(selector: Dict[str, Any]) -> list:
    clauses = []
    for field, value in selector.items():
        if field not in _FILTERABLE:
            raise KernelError(ErrorType.INVALID_DATA, f"Cannot filter currencies by {field}")
        column = getattr(Currency, field)
        if field == "code":
            value = [_code(v) for v in value] if isinstance(value, (list, tuple)) else _code(value)
        if isinstance(value, (list, tuple)):
            clauses.append(column.in_(value))
        else:
            clauses.append(column == value)
    return clauses


def _code(value: Any) -> str:
    if not isinstance(value, str):
        raise KernelError(ErrorType.INVALID_DATA, f"Currency code filter must be a string, got {value!r}")
    return value.lower()
