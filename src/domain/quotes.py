from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, model_validator

from domain.sources import QuoteSource


class FetchedQuote(BaseModel):
    """A validated provider quote that has not been persisted yet."""

    model_config = ConfigDict(frozen=True)

    source: QuoteSource
    buy_price: Decimal
    sell_price: Decimal

    @model_validator(mode="after")
    def _validate_prices(self) -> FetchedQuote:
        if self.buy_price <= 0 or self.sell_price <= 0:
            raise ValueError("buy_price and sell_price must be > 0")
        return self


class Quote(FetchedQuote):
    """Latest stored quote for a source."""

    updated_at: datetime


class AverageQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_buy_price: Decimal
    average_sell_price: Decimal
    source_count: int


class SourceSlippage(BaseModel):
    """Signed deviation of one source from the cross-source average.

    Differences are absolute (price minus average) and slippages are the
    same difference relative to the average.
    """

    model_config = ConfigDict(frozen=True)

    source: QuoteSource
    buy_price_slippage: Decimal
    sell_price_slippage: Decimal
    buy_price_difference: Decimal
    sell_price_difference: Decimal


__all__ = ["AverageQuote", "FetchedQuote", "Quote", "SourceSlippage"]
