from __future__ import annotations

from domain.aggregation import compute_average, compute_slippage
from domain.quotes import AverageQuote, Quote, SourceSlippage

from .quote_store import QuoteStore


class QuoteQueryService:
    """Read-only views over the current store snapshot.

    Every call reads the store once and never waits for the provider. A
    StoreError from the read is propagated to the caller unchanged.
    """

    def __init__(self, store: QuoteStore) -> None:
        self.store = store

    def get_quotes(self) -> list[Quote]:
        return self.store.list_all()

    def get_average(self) -> AverageQuote:
        return compute_average(self.store.list_all())

    def get_slippage(self) -> list[SourceSlippage]:
        return compute_slippage(self.store.list_all())


__all__ = ["QuoteQueryService"]
