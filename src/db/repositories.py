from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session

from db import models
from domain.errors import StoreError
from domain.quotes import Quote
from domain.sources import QuoteSource


class QuoteRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(self, source: QuoteSource, buy_price: Decimal, sell_price: Decimal, updated_at: datetime) -> Quote:
        stmt = insert(models.QuoteOrm).values(
            source=source.value,
            buy_price=buy_price,
            sell_price=sell_price,
            updated_at=updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["source"],
            set_={
                "buy_price": stmt.excluded.buy_price,
                "sell_price": stmt.excluded.sell_price,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self._session.execute(stmt)
        self._session.commit()
        return Quote(source=source, buy_price=buy_price, sell_price=sell_price, updated_at=updated_at)

    def list_all(self) -> list[Quote]:
        stmt = select(models.QuoteOrm).order_by(models.QuoteOrm.source.asc())
        return [self._to_domain(row) for row in self._session.execute(stmt).scalars().all()]

    @staticmethod
    def _to_domain(orm_quote: models.QuoteOrm) -> Quote:
        updated_at = orm_quote.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)

        # pydantic.ValidationError is a ValueError too.
        try:
            return Quote(
                source=QuoteSource(orm_quote.source),
                buy_price=orm_quote.buy_price,
                sell_price=orm_quote.sell_price,
                updated_at=updated_at,
            )
        except ValueError as exc:
            raise StoreError(f"Stored quote row for {orm_quote.source!r} is invalid") from exc
