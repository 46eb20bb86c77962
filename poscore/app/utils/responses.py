"""JSON envelopes shared by every endpoint.

Success bodies are ``{"ok": true, "data": ...}``. Failures carry the request
id so a cashier can quote it when reporting a problem.
"""

from typing import Any, Dict

from fastapi.responses import JSONResponse


def ok(data: Any) -> Dict[str, Any]:
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    *,
    details: Dict[str, Any] | None = None,
    hint: str | None = None,
) -> Dict[str, Any]:
    """Return an error envelope for ``code``."""
    from ..middlewares.request_id import request_id_ctx

    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    if hint:
        error["hint"] = hint
    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def error_response(exc) -> JSONResponse:
    """Render a :class:`~poscore.app.errors.PosError` with its status code."""
    return JSONResponse(
        err(exc.code, exc.message, details=exc.details, hint=exc.hint),
        status_code=exc.status_code,
    )
