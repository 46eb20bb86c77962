"""Helpers for signing and verifying workflow requests."""

from __future__ import annotations

import hashlib
import hmac
import time

SIGNATURE_HEADER = "X-Workflow-Signature"


def sign(secret: str, timestamp: int, body: bytes) -> str:
    """Return the signature header value for a workflow payload.

    Parameters
    ----------
    secret:
        Shared secret used to compute the HMAC digest.
    timestamp:
        UNIX timestamp in seconds.
    body:
        Raw request body in bytes.
    """
    msg = f"{timestamp}.".encode() + body
    digest = hmac.new(secret.encode(), msg, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def parse(header: str) -> tuple[int, str]:
    """Split a ``t=<ts>,v1=<digest>`` header into its parts."""
    parts = dict(
        item.split("=", 1) for item in header.split(",") if "=" in item
    )
    return int(parts["t"]), parts["v1"]


def verify(secret: str, body: bytes, header: str, max_skew: int = 300) -> bool:
    """Validate a signature header produced by :func:`sign`.

    Returns ``True`` if the digest matches ``body`` and the timestamp is within
    ``max_skew`` seconds of the current time.
    """
    try:
        ts, _ = parse(header)
    except (KeyError, ValueError):
        return False
    if abs(time.time() - ts) > max_skew:
        return False
    return hmac.compare_digest(sign(secret, ts, body), header)
