# Centralized Prometheus metrics. Middleware below records timing
# and counts for every request so dashboards can track health.

from time import monotonic

from fastapi import Request
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

# How each client IP was decided. A rising "unresolved" share means
# peers arrive with addresses we cannot parse; "forwarded_header" vs
# "remote_addr" shows how much traffic comes through trusted proxies.
CLIENT_IP_RESOLUTIONS_TOTAL = Counter(
    "client_ip_resolutions_total",
    "Client IP resolutions grouped by the source that decided them",
    ["source"],  # forwarded_header|remote_addr|unresolved
)

REQUEST_DURATION_MS = Histogram(
    "request_duration_ms",
    "API request duration in milliseconds",
    ["method", "route"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2000, 5000, 10000],
)
REQUESTS_TOTAL = Counter(
    "requests_total",
    "Total API requests",
    ["method", "route", "status_code"],
)


def record_client_ip_resolution(source: str) -> None:
    CLIENT_IP_RESOLUTIONS_TOTAL.labels(source=source).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = monotonic()
        response = await call_next(request)
        route = getattr(request.scope.get("route"), "path", None) or request.url.path
        REQUEST_DURATION_MS.labels(request.method, route).observe(
            (monotonic() - start) * 1000.0
        )
        REQUESTS_TOTAL.labels(request.method, route, str(response.status_code)).inc()
        return response
