# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""
from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "assa_http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "assa_http_request_duration_seconds", "HTTP request latency", ["method", "endpoint"]
)
HTTP_ERRORS = Counter(
    "assa_http_errors_total", "Total HTTP errors", ["method", "endpoint", "status"]
)
RATE_LIMITED = Counter(
    "assa_rate_limited_total", "Requests rejected by the rate limiter"
)

# ── Business Metrics (updated by service layer only) ──
REGISTRATIONS = Counter(
    "assa_registrations_total", "Registration attempts by outcome", ["outcome"]
)
MEMBERS_TOTAL = Gauge(
    "assa_members_total", "Registered members"
)
