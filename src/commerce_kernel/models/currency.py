# commerce_kernel/models/currency.py
from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from commerce_kernel.db.base import Base


class Currency(Base):
    __tablename__ = "currency"

    code: Mapped[str] = mapped_column(String(3), primary_key=True)
    symbol: Mapped[str] = mapped_column(String(16))
    symbol_native: Mapped[str] = mapped_column(String(16))
    name: Mapped[str] = mapped_column(String(128))
    includes_tax: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"Currency(code={self.code!r})"
