from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from domain.errors import FetchError, FormatError, QuoteValidationError, StoreError
from domain.quotes import FetchedQuote
from domain.sources import QuoteSource

from .quote_store import QuoteStore, utc_now

logger = logging.getLogger(__name__)


class QuoteFetcherLike(Protocol):
    def fetch_quotes(self) -> list[FetchedQuote]: ...


@dataclass(frozen=True)
class IngestionReport:
    started_at: datetime
    finished_at: datetime
    fetched: int = 0
    upserted: tuple[QuoteSource, ...] = field(default_factory=tuple)
    failed: tuple[QuoteSource, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.failed

    def as_dict(self) -> dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "fetched": self.fetched,
            "upserted": [source.value for source in self.upserted],
            "failed": [source.value for source in self.failed],
            "error": self.error,
        }


class IngestionService:
    """Runs one fetch -> normalize -> upsert cycle."""

    def __init__(self, fetcher: QuoteFetcherLike, store: QuoteStore) -> None:
        self.fetcher = fetcher
        self.store = store

    def run_cycle(self) -> IngestionReport:
        started_at = utc_now()
        logger.info("Starting quote update cycle")
        try:
            quotes = self.fetcher.fetch_quotes()
        except (FetchError, FormatError) as exc:
            logger.error("Error fetching quotes, skipping this cycle: %s", exc)
            return IngestionReport(started_at=started_at, finished_at=utc_now(), error=str(exc))

        if not quotes:
            logger.warning("No quotes returned from provider")
            return IngestionReport(started_at=started_at, finished_at=utc_now())

        upserted: list[QuoteSource] = []
        failed: list[QuoteSource] = []
        with ThreadPoolExecutor(max_workers=len(quotes), thread_name_prefix="quote-upsert") as pool:
            futures = {
                pool.submit(self.store.upsert, quote.source, quote.buy_price, quote.sell_price): quote.source
                for quote in quotes
            }
            for future in as_completed(futures):
                source = futures[future]
                try:
                    future.result()
                except (StoreError, QuoteValidationError) as exc:
                    logger.error("Failed to upsert quote for %s: %s", source.name, exc)
                    failed.append(source)
                else:
                    upserted.append(source)

        # Completion order is arbitrary; report in fetch order.
        order = {quote.source: index for index, quote in enumerate(quotes)}
        upserted.sort(key=order.__getitem__)
        failed.sort(key=order.__getitem__)

        logger.info("Successfully updated %d quotes in database", len(upserted))
        return IngestionReport(
            started_at=started_at,
            finished_at=utc_now(),
            fetched=len(quotes),
            upserted=tuple(upserted),
            failed=tuple(failed),
        )


__all__ = ["IngestionReport", "IngestionService", "QuoteFetcherLike"]
