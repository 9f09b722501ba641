"""
Request logging.

One line per request: method, path, status and duration. Server errors
log at WARNING so they stand out next to the monitor's tick summaries.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("api.requests")

# long-lived streams would log only when the client disconnects
UNLOGGED_PATHS = {"/api/alarms/stream"}


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, "%s %s -> %d (%.1fms)", request.method, path, response.status_code, elapsed_ms)
        return response
