"""Structured access logs.

Each request produces an inbound and an outbound JSON line. Payment
identifiers in bodies and query strings are masked before logging, and
successful calls are sampled with ``LOG_SAMPLE_2XX``. Settlement failures
are always logged in full so disputed payments can be traced.
"""

import json
import logging
import os
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..utils.responses import err
from .request_id import REQUEST_ID_HEADER, incoming_request_id, request_id_ctx

# Keys whose values never reach the logs
PII_KEYS = {"pin", "transaction_id", "reference", "card_number", "email"}
LOG_SAMPLE_2XX = float(os.getenv("LOG_SAMPLE_2XX", "0.1"))

logger = logging.getLogger("poscore.http")


def redact(obj):
    """Return ``obj`` with values of :data:`PII_KEYS` replaced by ``***``."""
    if isinstance(obj, dict):
        return {
            k: "***" if str(k).lower() in PII_KEYS else redact(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [redact(v) for v in obj]
    return obj


def _table_of(query: Dict[str, str], body: Any) -> Any:
    if isinstance(body, dict) and "table_id" in body:
        return body["table_id"]
    return query.get("table_id")


def _keep(status: int, path: str) -> bool:
    if path.startswith("/api/settlements"):
        return True
    if 200 <= status < 300:
        return random.random() < LOG_SAMPLE_2XX
    return True


class LoggingMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: access logs and the last-resort 500 handler."""

    async def dispatch(self, request: Request, call_next):
        req_id = incoming_request_id(request)
        request.state.request_id = req_id
        token = request_id_ctx.set(req_id)
        try:
            return await self._handle(request, call_next, req_id)
        finally:
            request_id_ctx.reset(token)

    async def _handle(self, request: Request, call_next, req_id: str):
        raw = await request.body()

        async def receive() -> dict:
            return {"type": "http.request", "body": raw, "more_body": False}

        request._receive = receive
        body = None
        if raw:
            try:
                body = json.loads(raw)
            except ValueError:
                body = None
        query = dict(request.query_params)

        inbound: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": "INFO",
            "req_id": req_id,
            "method": request.method,
            "path": request.url.path,
            "table_id": _table_of(query, body),
            "client": request.client.host if request.client else None,
        }
        if query:
            inbound["query"] = redact(query)
        if body is not None:
            inbound["body"] = redact(body)

        started = time.perf_counter()
        error_id = None
        try:
            response = await call_next(request)
        except Exception:
            error_id = uuid.uuid4().hex
            logger.exception(json.dumps({"req_id": req_id, "error_id": error_id}))
            payload = err("INTERNAL", "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)

        outbound: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": "ERROR" if response.status_code >= 500 else "INFO",
            "req_id": req_id,
            "route": request.url.path,
            "status": response.status_code,
            "latency_ms": int((time.perf_counter() - started) * 1000),
        }
        if error_id:
            outbound["error_id"] = error_id

        if _keep(response.status_code, request.url.path):
            logger.info(json.dumps(inbound))
            if response.status_code >= 500:
                logger.error(json.dumps(outbound))
            else:
                logger.info(json.dumps(outbound))

        response.headers[REQUEST_ID_HEADER] = req_id
        return response
