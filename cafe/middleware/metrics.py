import time

from prometheus_client import Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

HTTP_REQUESTS = Counter(
    "cafe_http_requests_total",
    "Requests served by the local API",
    ["method", "route", "status"],
)

HTTP_LATENCY = Histogram(
    "cafe_http_request_duration_seconds",
    "Local API request latency",
    ["method", "route"],
    # Local calls; anything near the top bucket is waiting on the remote store.
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5, 1.0, 5.0],
)

HTTP_IN_FLIGHT = Gauge(
    "cafe_http_requests_in_flight",
    "Local API requests currently being handled",
)

UNMATCHED_ROUTE = "unmatched"


def _route_label(request: Request) -> str:
    """Route template (``/orders/{order_id}``) so ids never become label values."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        HTTP_IN_FLIGHT.inc()
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            HTTP_IN_FLIGHT.dec()
        elapsed = time.perf_counter() - start

        # The router fills in scope["route"] while handling the request.
        route = _route_label(request)
        HTTP_REQUESTS.labels(method=request.method, route=route, status=str(response.status_code)).inc()
        HTTP_LATENCY.labels(method=request.method, route=route).observe(elapsed)
        return response
