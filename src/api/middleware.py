"""Middleware for rate limiting and request logging."""

import logging
import time
from collections import defaultdict
from datetime import UTC, datetime, timedelta

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.config import get_settings
from src.core.metrics import observe_http_request
from src.core.request_context import new_request_id, request_id_context
from src.core.structured_logging import log_json

# Configure structured logging
logger = logging.getLogger(__name__)
settings = get_settings()

PORTAL_PATH_PREFIX = "/api/portal/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware for the unauthenticated respondent portal.

    Rate limits:
    - Portal endpoints: ``PORTAL_RATE_LIMIT_PER_MINUTE`` requests per minute per IP
    """

    def __init__(self, app: ASGIApp, limit_per_minute: int | None = None, enabled: bool | None = None):
        super().__init__(app)
        self.limit_per_minute = limit_per_minute or settings.portal_rate_limit_per_minute
        self.enabled = settings.environment == "production" if enabled is None else enabled
        # Storage: {(endpoint, identifier): [(timestamp, count)]}
        self._requests: dict[tuple[str, str], list] = defaultdict(list)

    def _clean_old_requests(self, endpoint: str, identifier: str, window: timedelta) -> list:
        """Remove requests outside the time window, dropping the key once it is empty."""
        cutoff = datetime.now(UTC) - window
        key = (endpoint, identifier)
        recent = [(ts, count) for ts, count in self._requests.get(key, ()) if ts > cutoff]
        if recent:
            self._requests[key] = recent
        else:
            self._requests.pop(key, None)
        return recent

    def _get_request_count(self, endpoint: str, identifier: str, window: timedelta) -> int:
        """Get number of requests in the time window."""
        return sum(count for _, count in self._clean_old_requests(endpoint, identifier, window))

    def _add_request(self, endpoint: str, identifier: str) -> None:
        """Record a new request."""
        key = (endpoint, identifier)
        now = datetime.now(UTC)
        self._requests[key].append((now, 1))

    async def dispatch(self, request: Request, call_next):
        """Apply rate limiting to portal paths."""
        if not self.enabled or not request.url.path.startswith(PORTAL_PATH_PREFIX):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        count = self._get_request_count("portal", client_ip, timedelta(minutes=1))
        if count >= self.limit_per_minute:
            log_json(
                logger,
                logging.WARNING,
                "rate_limited",
                path=request.url.path,
                client_ip=client_ip,
                limit_per_minute=self.limit_per_minute,
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": "rate_limited",
                    "message": "Too many requests. Please try again later.",
                    "details": None,
                },
            )
        self._add_request("portal", client_ip)

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request logging middleware with structured logging.

    Logs:
    - Method, path, status code, duration
    - IP address for security
    - Structured JSON format
    """

    async def dispatch(self, request: Request, call_next):
        """Log request details."""
        incoming_request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or request.headers.get("X-Request-Id")
        )
        request_id = None
        if incoming_request_id:
            candidate = incoming_request_id.strip()
            if candidate and len(candidate) <= 128 and "\n" not in candidate and "\r" not in candidate:
                request_id = candidate

        if not request_id:
            request_id = new_request_id()

        request.state.request_id = request_id

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        with request_id_context(request_id):
            # Process request
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * 1000
                log_json(
                    logger,
                    logging.ERROR,
                    "request_error",
                    method=method,
                    path=path,
                    status_code=500,
                    duration_ms=round(duration_ms, 2),
                    client_ip=client_ip,
                    error=str(exc),
                    exception=exc.__class__.__name__,
                )
                raise

            response.headers.setdefault("X-Request-ID", request_id)

            # Calculate duration
            duration_ms = (time.perf_counter() - start_time) * 1000

            route_obj = request.scope.get("route")
            route_template = getattr(route_obj, "path", None) if route_obj else None
            if not route_template:
                route_template = "unmatched"

            observe_http_request(
                method=method,
                route=route_template,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            # Log at appropriate level
            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO

            log_json(
                logger,
                level,
                "http_request",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
            )

            return response
