"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.bm_admin.api.router import router as admin_router
from src.bm_common.database import async_session_factory, engine
from src.bm_common.errors import AppError
from src.bm_common.redis_client import check_redis, close_redis
from src.bm_common.response import error_response
from src.bm_gateway.middleware.rate_limit import RateLimitMiddleware
from src.bm_gateway.middleware.request_log import RequestLogMiddleware
from src.bm_market.api.router import router as market_router
from src.bm_market.application.service import ensure_engine_config
from src.bm_settlement.api.router import router as settlement_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: seed the engine config row (also proves the DB is up), ping Redis."""
    async with async_session_factory() as session:
        await ensure_engine_config(session)
    if settings.RATE_LIMIT_ENABLED:
        await check_redis()
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Starlette runs the last-added middleware first: request log wraps rate limiting.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
