# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)

settlements_completed_total = Counter(
    "settlements_completed_total", "Total settlements committed", ["method"]
)
settlements_completed_total.labels(method="cash").inc(0)

settlement_replays_total = Counter(
    "settlement_replays_total", "Total settlements answered from the idempotency cache"
)
settlement_replays_total.inc(0)

settlements_degraded_total = Counter(
    "settlements_degraded_total",
    "Total settlements committed while the payment workflow was unavailable",
)
settlements_degraded_total.inc(0)

settlement_validation_failures_total = Counter(
    "settlement_validation_failures_total", "Total settlements rejected by validation"
)
settlement_validation_failures_total.inc(0)

settlement_commit_failures_total = Counter(
    "settlement_commit_failures_total", "Total settlements whose local commit failed"
)
settlement_commit_failures_total.inc(0)

kitchen_dispatch_total = Counter(
    "kitchen_dispatch_total", "Total kitchen tickets sent", ["outcome"]
)
kitchen_dispatch_total.labels(outcome="ok").inc(0)
kitchen_dispatch_total.labels(outcome="failed").inc(0)

workflow_calls_total = Counter(
    "workflow_calls_total", "Total workflow engine calls", ["workflow", "outcome"]
)

catalog_fallbacks_total = Counter(
    "catalog_fallbacks_total",
    "Total catalog reads served from stale cache or the static menu",
    ["source"],
)

tables_occupied = Gauge("tables_occupied", "Number of tables currently occupied")
tables_occupied.set(0)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint(request: Request) -> Response:
    """Expose Prometheus metrics."""
    http_requests_total.labels(path="/metrics", method="GET", status="200").inc(0)
    registry = getattr(request.app.state, "tables", None)
    if registry is not None:
        tables = await registry.list()
        tables_occupied.set(sum(1 for t in tables if t.status.value == "occupied"))
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
