"""Settlement fingerprints and the stores that remember completed ones."""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .domain.payment_methods import method_fields, method_name
from .domain.settlement import SettlementRequest


def fingerprint(request: SettlementRequest) -> str:
    """Return a stable hash identifying one logical settlement.

    Only the business inputs are hashed; timestamps and request ids are left
    out so client retries produce the same value.
    """

    payload = {
        "table_id": request.table_id,
        "payment_method": method_name(request.method),
        "discount": str(request.discount),
        "discount_type": getattr(request.discount_type, "value", request.discount_type),
        "tip": str(request.tip),
        "method_fields": method_fields(request.method),
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


class MemoryIdempotencyStore:
    """Process-local cache of settlement results keyed by fingerprint."""

    def __init__(
        self, ttl: int = 600, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return payload

    async def put(self, key: str, payload: Dict[str, Any]) -> None:
        self._entries[key] = (self._clock() + self.ttl, payload)

    async def discard(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisIdempotencyStore:
    """Settlement results cached in Redis with an expiry.

    Payloads are stored as JSON so any worker sharing the Redis instance can
    replay them.
    """

    prefix = "idem:settle:"

    def __init__(self, redis, ttl: int = 600) -> None:
        self.redis = redis
        self.ttl = ttl

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        cached = await self.redis.get(f"{self.prefix}{key}")
        if not cached:
            return None
        return json.loads(cached)

    async def put(self, key: str, payload: Dict[str, Any]) -> None:
        await self.redis.set(f"{self.prefix}{key}", json.dumps(payload), ex=self.ttl)

    async def discard(self, key: str) -> None:
        await self.redis.delete(f"{self.prefix}{key}")


__all__ = ["MemoryIdempotencyStore", "RedisIdempotencyStore", "fingerprint"]
