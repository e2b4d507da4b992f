from __future__ import annotations

from typing import Optional

from commerce_kernel.models.currency import Currency
from commerce_kernel.repos.base import RepoBase


class CurrencyRepo(RepoBase[Currency]):
    model = Currency

    async def find_by_code(self, code: str) -> Optional[Currency]:
        return await self.first_where(Currency.code == code.lower())
