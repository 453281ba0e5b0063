import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from time import perf_counter
from typing import Annotated, Any, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.dependencies import get_query_service, get_scheduler, get_store
from api.schemas import AverageOut, NoQuotesOut, NoSlippageOut, QuoteOut, SlippageOut
from config import AppSettings, config
from domain.errors import StoreError
from domain.sources import SourceRegistry
from services.dolar_api_client import DolarApiClient
from services.ingestion import IngestionService, QuoteFetcherLike
from services.query_service import QuoteQueryService
from services.quote_fetcher import QuoteFetcher
from services.quote_store import SqliteQuoteStore
from services.scheduler import IngestionScheduler

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = ["/quotes", "/average", "/slippage"]


class QueryFailedError(Exception):
    def __init__(self, error: str, message: str) -> None:
        super().__init__(message)
        self.error = error
        self.message = message


def build_fetcher(settings: AppSettings) -> QuoteFetcher:
    client = DolarApiClient(base_url=settings.provider_url, timeout=settings.fetch_timeout_seconds)
    return QuoteFetcher(client, SourceRegistry(settings.source_aliases))


def create_app(settings: AppSettings | None = None, *, fetcher: QuoteFetcherLike | None = None) -> FastAPI:
    app_settings = settings or config()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
        store = SqliteQuoteStore(db_file=app_settings.db_file, echo=app_settings.db_echo).open()
        scheduler: IngestionScheduler | None = None
        if app_settings.ingestion_enabled:
            ingestion = IngestionService(fetcher or build_fetcher(app_settings), store)
            scheduler = IngestionScheduler(ingestion, interval_seconds=app_settings.ingestion_interval_seconds)
            scheduler.start()
        else:
            logger.info("Quote ingestion disabled")

        fastapi_app.state.store = store
        fastapi_app.state.scheduler = scheduler
        try:
            yield
        finally:
            if scheduler is not None:
                await asyncio.to_thread(scheduler.stop, app_settings.fetch_timeout_seconds + 5)
            store.close()

    app = FastAPI(title="Currency quotes", lifespan=lifespan)
    _register_handlers(app)
    _register_routes(app)
    return app


def _register_handlers(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        start_time = perf_counter()
        response = await call_next(request)
        process_time = perf_counter() - start_time
        logger.info("Request time: %s %s: %.4fs", request.method, request.url, process_time)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not Found",
                    "message": f"Route {request.method} {request.url.path} not found",
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                },
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(QueryFailedError)
    async def query_failed(request: Request, exc: QueryFailedError) -> JSONResponse:
        logger.error("%s: %s", exc.error, exc.message)
        return JSONResponse(status_code=500, content={"error": exc.error, "message": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error", "message": str(exc)})


def _register_routes(app: FastAPI) -> None:
    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        links = "\n".join(f'      <a href="{path}">{path}</a>' for path in AVAILABLE_ENDPOINTS)
        return f"<pre>\n      Welcome to the Currency Exchange API!\n\n{links}\n    </pre>"

    @app.get("/quotes", response_model=list[QuoteOut] | NoQuotesOut)
    def get_quotes(qs: Annotated[QuoteQueryService, Depends(get_query_service)]) -> list[QuoteOut] | NoQuotesOut:
        try:
            quotes = qs.get_quotes()
        except StoreError as exc:
            raise QueryFailedError("Failed to fetch quotes", str(exc)) from exc
        if not quotes:
            return NoQuotesOut()
        return [QuoteOut.from_domain(quote) for quote in quotes]

    @app.get("/average", response_model=AverageOut, response_model_exclude_none=True)
    def get_average(qs: Annotated[QuoteQueryService, Depends(get_query_service)]) -> AverageOut:
        try:
            average = qs.get_average()
        except StoreError as exc:
            raise QueryFailedError("Failed to calculate average", str(exc)) from exc
        return AverageOut.from_domain(average)

    @app.get("/slippage", response_model=list[SlippageOut] | NoSlippageOut)
    def get_slippage(
        qs: Annotated[QuoteQueryService, Depends(get_query_service)],
    ) -> list[SlippageOut] | NoSlippageOut:
        try:
            slippages = qs.get_slippage()
        except StoreError as exc:
            raise QueryFailedError("Failed to calculate slippage", str(exc)) from exc
        if not slippages:
            return NoSlippageOut()
        return [SlippageOut.from_domain(slippage) for slippage in slippages]

    @app.get("/health")
    def health(store: Annotated[SqliteQuoteStore, Depends(get_store)]) -> JSONResponse:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            store.ping()
        except StoreError as exc:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "database": "disconnected",
                    "error": str(exc),
                    "timestamp": timestamp,
                },
            )
        return JSONResponse(content={"status": "healthy", "database": "connected", "timestamp": timestamp})

    @app.get("/ingestion")
    def ingestion_status(
        scheduler: Annotated[IngestionScheduler | None, Depends(get_scheduler)],
    ) -> dict[str, Any]:
        if scheduler is None:
            return {"state": "disabled"}
        return scheduler.status()
