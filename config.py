# config.py

"""Application configuration utilities.

Values are primarily loaded from ``config.json`` and may be overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class InvoiceReset(str, Enum):
    """How often the invoice counter restarts at ``0001``."""

    NEVER = "never"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class WorkflowMode(str, Enum):
    """Select the webhook path prefix used by the workflow engine.

    ``PRODUCTION`` posts to ``webhook/<id>`` while ``TEST`` posts to
    ``webhook-test/<id>`` so staging runs never hit live workflows.
    """

    PRODUCTION = "production"
    TEST = "test"


DEFAULT_TABLES: list[dict] = [
    {"id": 1, "number": 1, "capacity": 4},
    {"id": 2, "number": 2, "capacity": 2},
    {"id": 3, "number": 3, "capacity": 6},
    {"id": 4, "number": 4, "capacity": 4},
    {"id": 5, "number": 5, "capacity": 2},
    {"id": 6, "number": 6, "capacity": 8},
    {"id": 7, "number": 7, "capacity": 4},
    {"id": 8, "number": 8, "capacity": 2},
]


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # An empty ``database_url`` selects the in-memory store.
    database_url: str = ""
    redis_url: str = ""
    tax_rate: Decimal = Decimal("0.08")
    currency: str = "COP"
    tax_id: str = "900123456-1"
    invoice_prefix: str = "POS"
    invoice_reset: InvoiceReset = InvoiceReset.MONTHLY
    idempotency_ttl_secs: int = 600
    catalog_url: str | None = None
    catalog_cache_secs: int = 60
    catalog_timeout_secs: float = 10.0
    kitchen_webhook_url: str | None = None
    kitchen_timeout_secs: float = 10.0
    workflow_base_url: str | None = None
    workflow_api_key: str | None = None
    workflow_hmac_secret: str | None = None
    workflow_mode: WorkflowMode = WorkflowMode.TEST
    workflow_timeout_secs: float = 45.0
    card_gateway_url: str | None = None
    card_gateway_timeout_secs: float = 8.0
    settlement_enabled: bool = True
    dispatch_clears_ledger: bool = False
    terminal_txn_min_length: int = 4
    qr_reference_min_length: int = 6
    table_seed: list[dict] = DEFAULT_TABLES


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    and fed into :class:`Settings`. Environment variables override any values
    from the JSON file. The result is cached to prevent repeated disk reads.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    # Environment variables override values from the JSON file.
    return Settings(**merged)
