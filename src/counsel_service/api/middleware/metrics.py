"""Access log with latency; also exposes the latency as ``X-Process-Time``."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("counsel_service.access")

PROCESS_TIME_HEADER = "X-Process-Time"


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.1f}ms"

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d in %.1fms",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response
