"""Client for the payment and invoice workflow engine.

Workflows are triggered by POSTing JSON to ``<base>/webhook/<id>`` (or
``webhook-test/<id>`` in test mode). Calls never raise: failures come back
as a :class:`WorkflowResponse` with ``success=False`` so callers can degrade
gracefully.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..routes_metrics import workflow_calls_total
from ..utils.webhook_signing import SIGNATURE_HEADER, sign

logger = logging.getLogger("poscore.workflow")

PAYMENT_WORKFLOW = "payment-processing"
INVOICE_WORKFLOW = "invoice-generation"
HEALTH_WORKFLOW = "health-check"


@dataclass
class WorkflowResponse:
    success: bool
    execution_id: Optional[str] = None
    data: Any = None
    error: Optional[str] = None


class WorkflowClient:
    """HMAC-signing HTTP client for the workflow engine."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        hmac_secret: str | None = None,
        mode: str = "production",
        timeout: float = 45.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.mode = getattr(mode, "value", mode)
        self.timeout = timeout
        self.transport = transport

    def endpoint(self, workflow_id: str) -> str:
        prefix = "webhook-test" if self.mode == "test" else "webhook"
        return f"{self.base_url}/{prefix}/{workflow_id}"

    def _headers(self, body: bytes) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "poscore/1.0",
        }
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if self.hmac_secret:
            headers[SIGNATURE_HEADER] = sign(self.hmac_secret, int(time.time()), body)
        return headers

    async def trigger(self, workflow_id: str, data: Dict[str, Any]) -> WorkflowResponse:
        body = json.dumps(data, default=str).encode()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                resp = await client.post(
                    self.endpoint(workflow_id), content=body, headers=self._headers(body)
                )
            if resp.status_code >= 400:
                raise httpx.HTTPStatusError(
                    f"workflow error {resp.status_code}: {resp.text or 'unknown error'}",
                    request=resp.request,
                    response=resp,
                )
            try:
                payload = resp.json()
            except ValueError:
                payload = {}
        except httpx.HTTPError as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("workflow %s failed: %s", workflow_id, message)
            workflow_calls_total.labels(workflow=workflow_id, outcome="failed").inc()
            return WorkflowResponse(success=False, error=message)

        execution_id = None
        if isinstance(payload, dict):
            execution_id = payload.get("executionId") or payload.get("id")
        workflow_calls_total.labels(workflow=workflow_id, outcome="ok").inc()
        return WorkflowResponse(
            success=True,
            execution_id=str(execution_id) if execution_id else "unknown",
            data=payload,
        )

    async def process_payment(self, payment: Dict[str, Any]) -> WorkflowResponse:
        return await self.trigger(PAYMENT_WORKFLOW, payment)

    async def generate_invoice(self, invoice: Dict[str, Any]) -> WorkflowResponse:
        return await self.trigger(INVOICE_WORKFLOW, invoice)

    async def check_health(self) -> bool:
        result = await self.trigger(HEALTH_WORKFLOW, {"ts": int(time.time())})
        return result.success


class NoOpWorkflowClient:
    """Stand-in used when no workflow engine is configured."""

    base_url = None

    async def trigger(self, workflow_id: str, data: Dict[str, Any]) -> WorkflowResponse:
        return WorkflowResponse(success=False, error="workflow engine not configured")

    async def process_payment(self, payment: Dict[str, Any]) -> WorkflowResponse:
        return await self.trigger(PAYMENT_WORKFLOW, payment)

    async def generate_invoice(self, invoice: Dict[str, Any]) -> WorkflowResponse:
        return await self.trigger(INVOICE_WORKFLOW, invoice)

    async def check_health(self) -> bool:
        return False


def build_workflow_client(settings, transport=None):
    """Return a :class:`WorkflowClient` or the no-op client for ``settings``."""

    if not settings.workflow_base_url:
        return NoOpWorkflowClient()
    return WorkflowClient(
        settings.workflow_base_url,
        api_key=settings.workflow_api_key,
        hmac_secret=settings.workflow_hmac_secret,
        mode=settings.workflow_mode,
        timeout=settings.workflow_timeout_secs,
        transport=transport,
    )


__all__ = [
    "NoOpWorkflowClient",
    "WorkflowClient",
    "WorkflowResponse",
    "build_workflow_client",
]
