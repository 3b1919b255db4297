"""Request logging middleware.

Assigns every request an id (an incoming X-Request-ID is kept when present),
stores it on request.state for the response envelope, echoes it back in the
X-Request-ID header and writes one access line per request. Server errors
are logged at WARNING.

Log format:
    INFO [POST] /api/v1/markets/7/claim → 200 (23ms) req_a1b2c3d4e5f6 client=10.0.0.7
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.bm_common.response import new_request_id

logger = logging.getLogger("bm.request")

_HEADER = "X-Request-ID"
_MAX_INCOMING_ID = 64


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get(_HEADER)
        request_id = incoming if incoming and len(incoming) <= _MAX_INCOMING_ID else None
        request.state.request_id = request_id or new_request_id()

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[_HEADER] = request.state.request_id

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s client=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
            request.client.host if request.client else "-",
        )
        return response
