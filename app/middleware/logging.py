import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger("app.middleware")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log for HTTP requests. WebSocket traffic is logged by the chat layer."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "%s %s - failed after %.2fms",
                request.method,
                request.url.path,
                (time.perf_counter() - start_time) * 1000,
                exc_info=True,
            )
            raise
        logger.info(
            "%s %s - %.2fms - %s",
            request.method,
            request.url.path,
            (time.perf_counter() - start_time) * 1000,
            response.status_code,
        )
        return response
