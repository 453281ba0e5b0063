from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

from domain.errors import QuoteValidationError
from domain.quotes import FetchedQuote
from domain.sources import QuoteSource, SourceRegistry

from .dolar_api_client import RawExternalItem

logger = logging.getLogger(__name__)

# Largest accepted price is just under 1e16.
MAX_PRICE_EXPONENT = 15


class RawItemSource(Protocol):
    def get_items(self) -> list[RawExternalItem]: ...


def parse_price(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise QuoteValidationError("price is missing", value=value)
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise QuoteValidationError(f"price {value!r} is not numeric", value=value) from exc
    if not price.is_finite():
        raise QuoteValidationError(f"price {value!r} is not finite", value=value)
    if price <= 0:
        raise QuoteValidationError(f"price {value!r} must be > 0", value=value)
    if price.adjusted() > MAX_PRICE_EXPONENT:
        raise QuoteValidationError(f"price {value!r} is out of range", value=value)
    return price


class QuoteFetcher:
    def __init__(self, client: RawItemSource, registry: SourceRegistry | None = None) -> None:
        self.client = client
        self.registry = registry or SourceRegistry()

    def fetch_quotes(self) -> list[FetchedQuote]:
        """Fetch provider items and keep the first valid one per canonical source.

        Raises FetchError or FormatError when the provider call itself fails.
        Items with unknown identifiers or invalid prices are skipped. A result
        shorter than the canonical source count is returned as is.
        """
        items = self.client.get_items()
        expected = self.registry.expected_count

        quotes: list[FetchedQuote] = []
        accepted: set[QuoteSource] = set()
        for item in items:
            source = self.registry.resolve(item.identifier)
            if source is None:
                logger.debug("Skipping unrecognized provider identifier %r", item.identifier)
                continue
            if source in accepted:
                logger.debug("Skipping duplicate entry %r for %s", item.identifier, source.name)
                continue

            try:
                buy_price = parse_price(item.buy_raw)
                sell_price = parse_price(item.sell_raw)
            except QuoteValidationError as exc:
                logger.debug("Skipping %r: %s", item.identifier, exc)
                continue

            quotes.append(FetchedQuote(source=source, buy_price=buy_price, sell_price=sell_price))
            accepted.add(source)
            if len(quotes) == expected:
                break

        if len(quotes) < expected:
            logger.warning("Only found %d out of %d expected sources", len(quotes), expected)
        logger.info("Fetched %d quotes from provider", len(quotes))
        return quotes


__all__ = ["QuoteFetcher", "RawItemSource", "parse_price"]
