from typing import Annotated

from fastapi import Depends, Request

from services.query_service import QuoteQueryService
from services.quote_store import SqliteQuoteStore
from services.scheduler import IngestionScheduler


def get_store(request: Request) -> SqliteQuoteStore:
    return request.app.state.store


def get_query_service(store: Annotated[SqliteQuoteStore, Depends(get_store)]) -> QuoteQueryService:
    return QuoteQueryService(store)


def get_scheduler(request: Request) -> IngestionScheduler | None:
    return request.app.state.scheduler
