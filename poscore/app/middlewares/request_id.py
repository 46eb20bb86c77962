"""Request id propagation for till and back-office calls."""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"
# Ids supplied by tills are echoed into logs, so only short safe tokens pass.
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def incoming_request_id(request: Request) -> str:
    """Return the caller's request id when it is well formed, else a new one."""
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if supplied and _VALID_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the context for the duration of the call."""

    async def dispatch(self, request: Request, call_next):
        req_id = getattr(request.state, "request_id", None) or incoming_request_id(request)
        request.state.request_id = req_id
        token = request_id_ctx.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = req_id
        return response
