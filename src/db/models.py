from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class QuoteOrm(Base):
    __tablename__ = "quotes"

    source: Mapped[str] = mapped_column(String, primary_key=True)
    buy_price: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    sell_price: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
