"""HTTP request metrics."""

from __future__ import annotations

import time

from prometheus_client import Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import http_requests_total

http_request_seconds = Histogram(
    "http_request_seconds", "HTTP request latency", ["path", "method"]
)


def _route_template(request: Request) -> str:
    # Templates keep label cardinality bounded (``/api/tables/{table_id}``).
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests and observe latency per route template."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            path = _route_template(request)
            http_request_seconds.labels(path=path, method=request.method).observe(
                time.perf_counter() - started
            )
            http_requests_total.labels(path=path, method=request.method, status=status).inc()
