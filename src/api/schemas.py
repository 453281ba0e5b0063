from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from domain.quotes import AverageQuote, Quote, SourceSlippage

NO_DATA_MESSAGE = "No quotes available yet. Please wait for the background job to fetch data."


class QuoteOut(BaseModel):
    source: str
    buy_price: float
    sell_price: float
    updated_at: datetime

    @classmethod
    def from_domain(cls, quote: Quote) -> QuoteOut:
        return cls(
            source=quote.source.value,
            buy_price=float(quote.buy_price),
            sell_price=float(quote.sell_price),
            updated_at=quote.updated_at,
        )


class NoQuotesOut(BaseModel):
    message: str = NO_DATA_MESSAGE
    quotes: list[QuoteOut] = Field(default_factory=list)


class AverageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    average_buy_price: float
    average_sell_price: float
    source_count: int = Field(alias="sourceCount")

    @classmethod
    def from_domain(cls, average: AverageQuote) -> AverageOut:
        return cls(
            message=NO_DATA_MESSAGE if average.source_count == 0 else None,
            average_buy_price=float(average.average_buy_price),
            average_sell_price=float(average.average_sell_price),
            source_count=average.source_count,
        )


class SlippageOut(BaseModel):
    source: str
    buy_price_slippage: float
    sell_price_slippage: float
    buy_price_difference: float
    sell_price_difference: float

    @classmethod
    def from_domain(cls, slippage: SourceSlippage) -> SlippageOut:
        return cls(
            source=slippage.source.value,
            buy_price_slippage=float(slippage.buy_price_slippage),
            sell_price_slippage=float(slippage.sell_price_slippage),
            buy_price_difference=float(slippage.buy_price_difference),
            sell_price_difference=float(slippage.sell_price_difference),
        )


class NoSlippageOut(BaseModel):
    message: str = NO_DATA_MESSAGE
    slippages: list[SlippageOut] = Field(default_factory=list)
