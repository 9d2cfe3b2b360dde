"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.rb_common.errors import AppError
from src.rb_common.response import error_response
from src.rb_engine.api.router import router as market_router
from src.rb_engine.application.service import get_engine_services
from src.rb_gateway.middleware.request_log import RequestLogMiddleware
from src.rb_ledger.api.router import router as ledger_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build the engine. Shutdown: report what is left in custody."""
    services = get_engine_services()
    logger.info("%s started (operator=%s)", settings.APP_NAME, settings.OPERATOR_ACCOUNT_ID)
    yield
    logger.info(
        "%s stopping: markets=%d custody=%d",
        settings.APP_NAME, services.manager.market_count, services.vault.custody_balance,
    )


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
