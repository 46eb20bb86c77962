"""Repository interface for dining tables."""

from abc import ABC, abstractmethod


class TablesRepo(ABC):
    """Contract for table persistence."""

    @abstractmethod
    async def get(self, table_id):
        """Return the table with ``table_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list(self):
        """Return all tables ordered by id."""
        raise NotImplementedError

    @abstractmethod
    async def set_status(self, table_id, status):
        """Store ``status`` for an existing table and return it."""
        raise NotImplementedError

    @abstractmethod
    async def seed(self, tables):
        """Insert provisioned tables that do not exist yet."""
        raise NotImplementedError
