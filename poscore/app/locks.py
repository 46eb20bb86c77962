"""Per-table mutual exclusion."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class TableLocks:
    """Hand out one :class:`asyncio.Lock` per table id.

    Work on different tables runs concurrently; work on the same table is
    serialized. A lock lives only while some task holds or waits for it, so
    ids that are never seen again (including unknown ones) leave nothing
    behind.
    """

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, table_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(table_id)
        if lock is None:
            lock = self._locks[table_id] = asyncio.Lock()
        self._users[table_id] = self._users.get(table_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[table_id] -= 1
            if not self._users[table_id]:
                del self._users[table_id]
                del self._locks[table_id]
