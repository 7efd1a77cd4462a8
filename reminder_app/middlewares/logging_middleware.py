import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from reminder_app.utils.logger import get_logger


logger = get_logger("middleware")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/v1/"):
            return await call_next(request)

        logger.info(f"{request.method} {request.url.path}")
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        log = logger.info if response.status_code < 400 else logger.warning
        log(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response
