from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Sequence

from domain.quotes import AverageQuote, Quote, SourceSlippage

PRICE_PLACES = Decimal("0.01")
SLIPPAGE_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
MIN_PRECISION = 28


def quantize(value: Decimal, places: Decimal) -> Decimal:
    # ROUND_HALF_UP on Decimal rounds ties away from zero for negative values too.
    return value.quantize(places, rounding=ROUND_HALF_UP)


def _precision_for(quotes: Sequence[Quote]) -> int:
    # Enough digits to hold the largest price exactly down to the smallest quantum.
    largest = max((max(q.buy_price.adjusted(), q.sell_price.adjusted()) for q in quotes), default=0)
    return MIN_PRECISION + max(0, largest)


def _raw_averages(quotes: Sequence[Quote]) -> tuple[Decimal, Decimal]:
    if not quotes:
        return ZERO, ZERO
    count = len(quotes)
    total_buy = sum((quote.buy_price for quote in quotes), ZERO)
    total_sell = sum((quote.sell_price for quote in quotes), ZERO)
    return total_buy / count, total_sell / count


def compute_average(quotes: Sequence[Quote]) -> AverageQuote:
    """Cross-source mean of buy and sell prices, rounded to cents.

    An empty snapshot yields zero averages with a source count of zero.
    """
    with localcontext(prec=_precision_for(quotes)):
        avg_buy, avg_sell = _raw_averages(quotes)
        return AverageQuote(
            average_buy_price=quantize(avg_buy, PRICE_PLACES),
            average_sell_price=quantize(avg_sell, PRICE_PLACES),
            source_count=len(quotes),
        )


def compute_slippage(quotes: Sequence[Quote]) -> list[SourceSlippage]:
    """Per-source deviation from the unrounded average, in snapshot order."""
    if not quotes:
        return []

    with localcontext(prec=_precision_for(quotes)):
        return _slippages(quotes)


def _slippages(quotes: Sequence[Quote]) -> list[SourceSlippage]:
    avg_buy, avg_sell = _raw_averages(quotes)
    slippages: list[SourceSlippage] = []
    for quote in quotes:
        buy_diff = quote.buy_price - avg_buy
        sell_diff = quote.sell_price - avg_sell
        buy_slippage = buy_diff / avg_buy if avg_buy != 0 else ZERO
        sell_slippage = sell_diff / avg_sell if avg_sell != 0 else ZERO
        slippages.append(
            SourceSlippage(
                source=quote.source,
                buy_price_slippage=quantize(buy_slippage, SLIPPAGE_PLACES),
                sell_price_slippage=quantize(sell_slippage, SLIPPAGE_PLACES),
                buy_price_difference=quantize(buy_diff, PRICE_PLACES),
                sell_price_difference=quantize(sell_diff, PRICE_PLACES),
            )
        )
    return slippages


__all__ = ["compute_average", "compute_slippage", "quantize"]
