# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
HTTP Middleware — request ID propagation, Prometheus metrics and
per-client rate limiting.
"""
import json
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.dependencies import get_rate_limiter, get_settings
from app.core.logging import get_logger
from app.metrics import HTTP_ERRORS, RATE_LIMITED, REQUEST_COUNT, REQUEST_LATENCY

logger = get_logger(__name__)

KNOWN_PATHS: set[str] = {
    "/api/register", "/api/members", "/api/stats", "/api/validation-rules",
}

SKIP_PATHS: tuple[str, ...] = (
    "/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc",
)


SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add the standard browser hardening headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate or generate X-Request-ID for tracing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Track request count, latency, and error rate via Prometheus."""

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        path = request.url.path
        if path in SKIP_PATHS:
            return response
        # unknown paths share one label so scanners cannot blow up cardinality
        endpoint = path if path in KNOWN_PATHS else "other"
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint,
                             status=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(duration)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(method=request.method, endpoint=endpoint,
                               status=str(response.status_code)).inc()
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Blanket per-IP request ceiling over a fixed window, every endpoint alike."""

    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        if (
            not settings.RATE_LIMIT_ENABLED
            or request.method == "OPTIONS"
            or request.url.path in settings.RATE_LIMIT_BYPASS
        ):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed, remaining, retry_after = get_rate_limiter().is_allowed(client_ip)

        if not allowed:
            RATE_LIMITED.inc()
            logger.warning("Rate limit exceeded client=%s path=%s", client_ip, request.url.path)
            return Response(
                content=json.dumps({
                    "success": False,
                    "message": "Too many requests from this IP, please try again later.",
                }),
                status_code=429, media_type="application/json",
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(settings.RATE_LIMIT_MAX_REQUESTS),
                    "X-RateLimit-Remaining": "0",
                },
            )
        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(settings.RATE_LIMIT_MAX_REQUESTS)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
