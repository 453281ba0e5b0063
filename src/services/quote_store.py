from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from types import TracebackType
from typing import Callable, Protocol

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.db import init_engine
from db.repositories import QuoteRepository
from domain.errors import QuoteValidationError, StoreError
from domain.quotes import Quote
from domain.sources import QuoteSource

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuoteStore(Protocol):
    def upsert(self, source: QuoteSource, buy_price: Decimal, sell_price: Decimal) -> Quote: ...

    def list_all(self) -> list[Quote]: ...


class SqliteQuoteStore(QuoteStore):
    """Latest quote per canonical source, persisted in SQLite.

    Each call runs in its own short-lived session so the store can be shared
    between the ingestion worker threads and request handlers. Upserts to the
    same source are serialised with a per-source lock; different sources are
    written independently.
    """

    def __init__(
        self,
        *,
        db_file: str | Path,
        echo: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.db_file = Path(db_file)
        self.echo = echo
        self._clock = clock
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker[Session] | None = None
        self._locks = {source: threading.Lock() for source in QuoteSource}

    def open(self) -> SqliteQuoteStore:
        if self._engine is not None:
            return self
        try:
            self._engine = init_engine(self.echo, db_file=self.db_file)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to open quote store at {self.db_file}") from exc
        self._sessionmaker = sessionmaker(self._engine)
        logger.info("Opened quote store at %s", self.db_file)
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Closed quote store at %s", self.db_file)

    def __enter__(self) -> SqliteQuoteStore:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def upsert(self, source: QuoteSource, buy_price: Decimal, sell_price: Decimal) -> Quote:
        if buy_price <= 0 or sell_price <= 0:
            raise QuoteValidationError(
                f"refusing to store non-positive prices for {source.name}", value=(buy_price, sell_price)
            )

        with self._locks[source]:
            try:
                with self._session() as session:
                    return QuoteRepository(session).upsert(source, buy_price, sell_price, self._clock())
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to upsert quote for {source.name}") from exc

    def list_all(self) -> list[Quote]:
        try:
            with self._session() as session:
                return QuoteRepository(session).list_all()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read quotes") from exc

    def ping(self) -> None:
        try:
            with self._session() as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreError("Quote store is unreachable") from exc

    def _session(self) -> Session:
        if self._sessionmaker is None:
            raise StoreError("Quote store is not open")
        return self._sessionmaker()


__all__ = ["QuoteStore", "SqliteQuoteStore", "utc_now"]
