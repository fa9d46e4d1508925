# File: src/fuelledger/main.py
"""FastAPI application factory for the fuel station ledger."""

import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from fuelledger.core.logging import configure_logging, get_logger

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup and shutdown events."""
    start_time = datetime.now()
    logger.info("app.startup", message="FuelLedger starting up", timestamp=start_time.isoformat())

    from fuelledger.api.health import set_app_start_time

    set_app_start_time(start_time)

    yield

    logger.info("app.shutdown", message="FuelLedger shutting down gracefully")


def _setup_middleware(app: FastAPI) -> None:
    from fuelledger.middleware.logging import RequestIDMiddleware

    app.add_middleware(RequestIDMiddleware)


def _register_routers(app: FastAPI) -> None:
    from fuelledger.api.accounts import router as accounts_router
    from fuelledger.api.cards import router as cards_router
    from fuelledger.api.daily_balances import router as daily_balances_router
    from fuelledger.api.health import router as health_router
    from fuelledger.api.operations import router as operations_router
    from fuelledger.api.reconciliation import router as reconciliation_router
    from fuelledger.api.transactions import router as transactions_router

    app.include_router(health_router)
    app.include_router(accounts_router)
    app.include_router(transactions_router)
    app.include_router(daily_balances_router)
    app.include_router(operations_router)
    app.include_router(cards_router)
    app.include_router(reconciliation_router)


def create_app() -> FastAPI:
    """Application factory for FuelLedger."""
    from fuelledger.core.sentry import init_sentry

    init_sentry()

    app = FastAPI(
        title="FuelLedger API",
        description="Fuel station ledger and daily cash reconciliation",
        version="0.1.0",
        lifespan=lifespan,
    )

    from fuelledger.core.exception_handlers import register_exception_handlers

    register_exception_handlers(app)
    _setup_middleware(app)
    _register_routers(app)

    logger.info("app.configured", message="FastAPI application created successfully")
    return app


def run() -> None:
    """Development server entrypoint."""
    uvicorn.run(
        "fuelledger.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
