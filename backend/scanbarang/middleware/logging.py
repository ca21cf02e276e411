"""
Scan Barang Backend — Request Logging Middleware
==================================================

What:  One access-log line per HTTP request: method, path, status, duration.
Why:   Correlates with the request ID and picks the log level from the status.

What we log vs what we DON'T log:
    Log:       method, path, status, duration, client IP, request ID
    Never log: request bodies (passwords, uploads), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from scanbarang.middleware.request_id import request_id_var

logger = logging.getLogger("scanbarang.access")

# Probes and static files would drown the useful lines
QUIET_PREFIXES = ("/health", "/images/", "/qr_codes/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request on completion.

    Level by status:
        5xx → ERROR, 4xx → WARNING, everything else → INFO
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
