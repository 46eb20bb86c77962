"""SQLAlchemy-backed repository implementations."""

from .ledger_repo_sql import SqlLedgerRepo
from .payments_repo_sql import SqlPaymentsRepo
from .tables_repo_sql import SqlTablesRepo

__all__ = ["SqlLedgerRepo", "SqlPaymentsRepo", "SqlTablesRepo"]
