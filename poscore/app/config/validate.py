"""Startup configuration validation utilities."""

from __future__ import annotations

import logging
from decimal import Decimal
from urllib.parse import urlparse

logger = logging.getLogger("poscore.config")

URL_FIELDS = [
    "catalog_url",
    "kitchen_webhook_url",
    "workflow_base_url",
    "card_gateway_url",
]
SECRET_FIELDS = ["workflow_api_key", "workflow_hmac_secret"]


def _mask(value: str) -> str:
    """Return a masked representation of ``value`` for logging."""
    if len(value) <= 4:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 4) + value[-2:]


def validate_settings(settings) -> None:
    """Check cross-field consistency of ``settings``.

    Logs masked secrets for audit and raises :class:`RuntimeError` listing
    every problem found.
    """

    problems: list[str] = []

    if settings.dispatch_clears_ledger and settings.settlement_enabled:
        problems.append(
            "dispatch_clears_ledger requires settlement_enabled=false; "
            "settlement prices the ledger after dispatch"
        )
    if not Decimal("0") <= Decimal(settings.tax_rate) < Decimal("1"):
        problems.append("tax_rate must be a fraction between 0 and 1")
    if settings.idempotency_ttl_secs <= 0:
        problems.append("idempotency_ttl_secs must be positive")
    if settings.terminal_txn_min_length < 1 or settings.qr_reference_min_length < 1:
        problems.append("validator minimum lengths must be at least 1")

    for name in URL_FIELDS:
        value = getattr(settings, name)
        if not value:
            continue
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            problems.append(f"{name} must be a valid http(s) URL")

    if settings.redis_url and urlparse(settings.redis_url).scheme not in {
        "redis",
        "rediss",
        "unix",
    }:
        problems.append("redis_url must use the redis:// or rediss:// scheme")

    if settings.workflow_hmac_secret and not settings.workflow_base_url:
        logger.warning("workflow_hmac_secret is set but workflow_base_url is empty")

    ids = [t["id"] for t in settings.table_seed]
    if len(ids) != len(set(ids)):
        problems.append("table_seed contains duplicate table ids")

    for name in SECRET_FIELDS:
        value = getattr(settings, name)
        if value:
            logger.info("%s=%s", name, _mask(value))

    if problems:
        raise RuntimeError("Invalid configuration: " + "; ".join(problems))
