"""HTTP client for the kitchen ticket collaborator."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from ..errors import ExternalServiceDegraded

logger = logging.getLogger("poscore.kitchen")

SERVICE = "kitchen"


def _error_message(resp: httpx.Response) -> str:
    """Pull a readable message out of a failed kitchen response."""

    fallback = f"Error {resp.status_code}: {resp.reason_phrase}"
    if "application/json" in resp.headers.get("content-type", ""):
        try:
            data = resp.json()
        except ValueError:
            return fallback
        if isinstance(data, dict):
            return str(data.get("message") or data.get("error") or fallback)
        return fallback
    return resp.text or fallback


class KitchenTicketClient:
    """POST kitchen tickets to the configured webhook."""

    def __init__(
        self,
        url: str | None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(self, ticket: Dict[str, Any]) -> Any:
        """Deliver ``ticket`` and return the collaborator's reply.

        Raises :class:`ExternalServiceDegraded` when the URL is missing, the
        request times out or the reply is not 2xx.
        """
        if not self.url:
            raise ExternalServiceDegraded(SERVICE, "kitchen webhook URL not configured")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                resp = await client.post(self.url, json=ticket)
        except httpx.TimeoutException as exc:
            raise ExternalServiceDegraded(
                SERVICE, "timed out contacting the kitchen"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceDegraded(SERVICE, str(exc) or "kitchen unreachable") from exc

        if resp.status_code >= 300:
            message = _error_message(resp)
            logger.warning("kitchen rejected ticket: %s", message)
            raise ExternalServiceDegraded(SERVICE, message)

        try:
            return resp.json()
        except ValueError:
            return resp.text or {"status": "sent"}
