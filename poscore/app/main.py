# main.py

"""FastAPI application factory for the table order and settlement service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .config.validate import validate_settings
from .db import init_models, make_engine, make_sessionmaker
from .errors import PosError
from .idempotency import MemoryIdempotencyStore, RedisIdempotencyStore
from .ledger import OrderLedger
from .locks import TableLocks
from .middlewares import LoggingMiddleware, PrometheusMiddleware, RequestIdMiddleware
from .obs.logging import configure_logging
from .providers.card_gateway import HttpCardGateway
from .providers.catalog import CatalogProvider
from .providers.kitchen import KitchenTicketClient
from .providers.workflow import build_workflow_client
from .repos_memory import (
    MemoryLedgerRepo,
    MemoryPaymentsRepo,
    MemoryState,
    MemoryTablesRepo,
)
from .repos_sqlalchemy import SqlLedgerRepo, SqlPaymentsRepo, SqlTablesRepo
from .routes_kitchen import router as kitchen_router
from .routes_menu import router as menu_router
from .routes_metrics import router as metrics_router
from .routes_order_lines import router as order_lines_router
from .routes_payments import router as payments_router
from .routes_settlements import router as settlements_router
from .routes_tables import router as tables_router
from .services.kitchen import KitchenDispatch
from .services.settlement import SettlementCoordinator
from .tables import TableRegistry
from .utils.responses import err, error_response
from .validation import PaymentValidator

logger = logging.getLogger("poscore")


@dataclass
class Store:
    ledger: Any
    tables: Any
    payments: Any
    engine: Any = None

    async def init(self) -> None:
        if self.engine is not None:
            await init_models(self.engine)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_store(settings: Settings) -> Store:
    """Return the SQL store for ``database_url`` or the in-memory one."""

    if settings.database_url:
        engine = make_engine(settings.database_url)
        sessionmaker = make_sessionmaker(engine)
        return Store(
            ledger=SqlLedgerRepo(sessionmaker),
            tables=SqlTablesRepo(sessionmaker),
            payments=SqlPaymentsRepo(sessionmaker),
            engine=engine,
        )
    state = MemoryState()
    ledger = MemoryLedgerRepo(state)
    tables = MemoryTablesRepo(state)
    return Store(ledger=ledger, tables=tables, payments=MemoryPaymentsRepo(state, ledger, tables))


def create_app(
    settings: Settings | None = None,
    *,
    store: Store | None = None,
    redis_client=None,
    catalog: CatalogProvider | None = None,
    workflow=None,
    kitchen_client: KitchenTicketClient | None = None,
    card_gateway=None,
) -> FastAPI:
    """Build the application.

    Every collaborator can be injected, which is how tests swap in fakes.
    Anything not given is built from ``settings``.
    """

    settings = settings or get_settings()
    validate_settings(settings)

    store = store or build_store(settings)
    if redis_client is None and settings.redis_url:
        redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    if redis_client is not None:
        idempotency = RedisIdempotencyStore(redis_client, settings.idempotency_ttl_secs)
    else:
        idempotency = MemoryIdempotencyStore(settings.idempotency_ttl_secs)
    catalog = catalog or CatalogProvider(
        settings.catalog_url,
        cache_secs=settings.catalog_cache_secs,
        timeout=settings.catalog_timeout_secs,
    )
    workflow = workflow or build_workflow_client(settings)
    kitchen_client = kitchen_client or KitchenTicketClient(
        settings.kitchen_webhook_url, timeout=settings.kitchen_timeout_secs
    )
    if card_gateway is None and settings.card_gateway_url:
        card_gateway = HttpCardGateway(
            settings.card_gateway_url, timeout=settings.card_gateway_timeout_secs
        )

    locks = TableLocks()
    tables = TableRegistry(store.tables)
    ledger = OrderLedger(store.ledger, tables, catalog, locks)
    settlement = SettlementCoordinator(
        ledger_repo=store.ledger,
        tables=tables,
        payments=store.payments,
        catalog=catalog,
        locks=locks,
        idempotency=idempotency,
        workflow=workflow,
        validator=PaymentValidator(
            settings.terminal_txn_min_length, settings.qr_reference_min_length
        ),
        tax_rate=settings.tax_rate,
        currency=settings.currency,
        tax_id=settings.tax_id,
        invoice_prefix=settings.invoice_prefix,
        invoice_reset=settings.invoice_reset.value,
        card_gateway=card_gateway,
    )
    kitchen = KitchenDispatch(
        ledger_repo=store.ledger,
        tables=tables,
        locks=locks,
        client=kitchen_client,
        clear_ledger=settings.dispatch_clears_ledger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.init()
        await tables.seed(settings.table_seed)
        if workflow.base_url:
            healthy = await workflow.check_health()
            if not healthy:
                logger.warning("workflow engine health check failed; payments will degrade")
        yield
        await store.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(title="POS Core API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.redis = redis_client
    app.state.tables = tables
    app.state.ledger = ledger
    app.state.settlement = settlement
    app.state.kitchen = kitchen
    app.state.catalog = catalog
    app.state.payments = store.payments

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(PosError)
    async def pos_error_handler(request: Request, exc: PosError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            exc.message,
            extra={"status": exc.status_code, "route": request.url.path},
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(p) for p in e['loc'] if p != 'body')}: {e['msg']}"
            for e in exc.errors()
        ]
        return JSONResponse(
            err("VALIDATION_FAILED", "; ".join(errors), details={"errors": errors}),
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail, extra={"status": exc.status_code, "route": request.url.path}
        )
        return JSONResponse(err(exc.status_code, exc.detail), status_code=exc.status_code)

    app.include_router(tables_router)
    app.include_router(order_lines_router)
    app.include_router(kitchen_router)
    if settings.settlement_enabled:
        app.include_router(settlements_router)
    app.include_router(payments_router)
    app.include_router(menu_router)
    app.include_router(metrics_router)

    @app.get("/health")
    async def health() -> dict:
        return {"ok": True}

    return app


def create_app_from_env() -> FastAPI:
    """Entry point for ``uvicorn --factory``; configures logging first."""

    configure_logging()
    return create_app()


__all__ = ["Store", "build_store", "create_app", "create_app_from_env"]
