"""
Middleware for request/response logging.
"""
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import set_correlation_id, get_logger

logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 1.0


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request/response logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log its outcome."""
        # Reuse the caller's correlation ID when one is supplied
        correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_ip = self._get_client_ip(request)

        await logger.ainfo(
            "HTTP request started",
            method=method,
            path=path,
            query_params=dict(request.query_params),
            client_ip=client_ip,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            await logger.aerror(
                "HTTP request failed",
                method=method,
                path=path,
                duration_ms=round(duration * 1000, 2),
                error=str(e),
                error_type=type(e).__name__,
                client_ip=client_ip,
            )
            raise

        duration = time.time() - start_time
        await logger.ainfo(
            "HTTP request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            client_ip=client_ip,
        )

        if duration > SLOW_REQUEST_SECONDS:
            await logger.awarning(
                "Slow HTTP request detected",
                method=method,
                path=path,
                duration_ms=round(duration * 1000, 2),
                status_code=response.status_code,
            )

        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request headers."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # Take the first IP in the chain
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host
        return "unknown"
