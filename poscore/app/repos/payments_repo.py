"""Repository interface for payments and invoice stubs."""

from abc import ABC, abstractmethod


class PaymentsRepo(ABC):
    """Contract for settlement persistence."""

    @abstractmethod
    async def commit_settlement(self, payment, invoice, *, series):
        """Store ``payment`` and ``invoice``, clear the table and free it.

        The invoice number is drawn from ``series`` as part of the same unit
        of work. Either all effects are applied or none; failures raise
        :class:`~poscore.app.errors.FatalCommitError`.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_payment(self, payment_id):
        """Return the payment with ``payment_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def get_invoice_for_payment(self, payment_id):
        """Return the invoice stub issued for ``payment_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list_payments(self, start, end):
        """Return payments completed in ``[start, end)``."""
        raise NotImplementedError
