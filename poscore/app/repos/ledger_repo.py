"""Repository interface for open order lines."""

from abc import ABC, abstractmethod


class LedgerRepo(ABC):
    """Contract for per-table order line persistence.

    Implementations store lines only; table scoping and occupancy rules live
    in :class:`poscore.app.ledger.OrderLedger`.
    """

    @abstractmethod
    async def list_lines(self, table_id):
        """Return the lines of ``table_id`` in insertion order."""
        raise NotImplementedError

    @abstractmethod
    async def get_line(self, line_id):
        """Return the line with ``line_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def insert_line(self, line):
        """Persist a new line."""
        raise NotImplementedError

    @abstractmethod
    async def update_quantity(self, line_id, quantity):
        """Set the quantity of an existing line."""
        raise NotImplementedError

    @abstractmethod
    async def delete_line(self, line_id):
        """Delete a line."""
        raise NotImplementedError

    @abstractmethod
    async def clear(self, table_id):
        """Delete every line of ``table_id`` and return how many were removed."""
        raise NotImplementedError
