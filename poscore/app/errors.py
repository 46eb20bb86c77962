"""Error taxonomy shared by the ledger, settlement and dispatch services.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the
exception handler in :mod:`poscore.app.main` can render the standard error
envelope without knowing about individual services.
"""

from __future__ import annotations

from typing import Any, Dict, List


class PosError(Exception):
    """Base class for recoverable and fatal POS errors."""

    status_code = 500
    code = "POS_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        hint: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.hint = hint
        self.details = details


class ValidationError(PosError):
    """Bad or insufficient input; every reason is reported at once."""

    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(
        self,
        errors: List[str],
        message: str | None = None,
        *,
        code: str | None = None,
        hint: str | None = None,
    ) -> None:
        self.errors = list(errors)
        super().__init__(
            message or "; ".join(self.errors),
            code=code,
            hint=hint,
            details={"errors": self.errors},
        )


class NoItemsError(ValidationError):
    """Raised when a table has nothing to bill or send to the kitchen."""

    code = "NO_ITEMS"

    def __init__(self, table_id: int) -> None:
        super().__init__(
            [f"table {table_id} has no items in the current order"],
            hint="Add products to the order first",
        )
        self.table_id = table_id


class NotFoundError(PosError):
    """Unknown table, order line or product."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint or "Refresh and try again")


class ConflictError(PosError):
    """A settlement with the same fingerprint already completed.

    Not a failure: ``result`` holds the earlier outcome which is returned to
    the caller unchanged.
    """

    status_code = 200
    code = "IDEMPOTENT_REPLAY"

    def __init__(self, fingerprint: str, result: Any) -> None:
        super().__init__(f"settlement {fingerprint[:12]} already completed")
        self.fingerprint = fingerprint
        self.result = result


class ExternalServiceDegraded(PosError):
    """A collaborator call failed or timed out."""

    status_code = 502
    code = "EXTERNAL_DEGRADED"

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class KitchenDispatchError(PosError):
    """The kitchen ticket could not be delivered; the caller should retry."""

    status_code = 502
    code = "KITCHEN_UNAVAILABLE"

    def __init__(self, message: str) -> None:
        super().__init__(message, hint="Send the order to the kitchen again")


class FatalCommitError(PosError):
    """Local persistence failed while committing a settlement.

    The message shown to users is generic; the underlying cause is chained
    for logs only.
    """

    status_code = 500
    code = "COMMIT_FAILED"

    def __init__(self, table_id: int) -> None:
        super().__init__(
            "The payment could not be completed",
            hint="Nothing was charged in the system; retry the payment",
        )
        self.table_id = table_id


__all__ = [
    "PosError",
    "ValidationError",
    "NoItemsError",
    "NotFoundError",
    "ConflictError",
    "ExternalServiceDegraded",
    "KitchenDispatchError",
    "FatalCommitError",
]
