"""Fixed-window rate limiting backed by Redis.

Rules (per client, per minute):
  - write group (POST/PUT/PATCH/DELETE): RATE_LIMIT_WRITE_PER_MINUTE
  - query group (everything else):      RATE_LIMIT_QUERY_PER_MINUTE

Key pattern: "ratelimit:{client}:{group}", counted with INCR and expired with
EXPIRE on the first hit of each window. The client is the first hop of
X-Forwarded-For when present (reverse proxy aware), else the peer address.
Over-limit requests get the 9001 envelope with HTTP 429 and Retry-After.
"""

import logging

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.bm_common.errors import RateLimitError
from src.bm_common.redis_client import get_redis
from src.bm_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_EXEMPT_PATHS = frozenset({"/health"})


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        if request.method in _WRITE_METHODS:
            group, limit = "write", settings.RATE_LIMIT_WRITE_PER_MINUTE
        else:
            group, limit = "query", settings.RATE_LIMIT_QUERY_PER_MINUTE
        client = client_key(request)
        key = f"ratelimit:{client}:{group}"

        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)
        if count > limit:
            logger.warning("Rate limit hit: client=%s group=%s count=%d", client, group, count)
            err = RateLimitError()
            resp = error_response(
                err.code, err.message, getattr(request.state, "request_id", None)
            )
            return JSONResponse(
                status_code=err.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS)},
            )
        return await call_next(request)
