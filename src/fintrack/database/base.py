"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from fintrack.domain.entities import (
    Account,
    Transaction,
    ImportJob,
    ImportRow,
    ImportCounts,
    Notification,
)


class Database(ABC):
    """Abstract database interface for fintrack.

    Every operation runs inside an atomic unit. Operations called while an
    ``atomic()`` block is open join that unit instead of committing on their
    own, which is how services group several writes into one commit.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[Any]:
        """Open (or join) an atomic unit.

        The outermost unit commits on normal exit and rolls back when an
        exception escapes. Storage failures surface as StorageError.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        owner_id: str,
        name: str,
        kind: str,
        currency: str,
        is_default: bool = False,
    ) -> Account:
        """Create an account with a zero balance."""
        pass

    @abstractmethod
    def get_account(self, account_id: str, owner_id: Optional[str] = None) -> Optional[Account]:
        """Get account by ID, optionally scoped to an owner."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: str) -> list[Account]:
        """List an owner's accounts, default account first."""
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> None:
        """Delete an account, detaching its transactions."""
        pass

    @abstractmethod
    def increment_account_balance(self, account_id: str, delta: Decimal) -> bool:
        """Add delta to the stored balance in a single statement.

        Returns False if no account row matched.
        """
        pass

    @abstractmethod
    def get_ledger_sum(self, account_id: str) -> Decimal:
        """Signed sum of all transactions referencing an account."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        owner_id: str,
        amount: Decimal,
        type: str,
        occurred_at: datetime,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        description: Optional[str] = None,
        mode: str = "cash",
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Insert a transaction row."""
        pass

    @abstractmethod
    def get_transaction(
        self, transaction_id: str, owner_id: Optional[str] = None
    ) -> Optional[Transaction]:
        """Get transaction by ID, optionally scoped to an owner."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: str, fields: dict[str, Any]) -> Transaction:
        """Overwrite the given columns of a transaction row."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction row."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        owner_id: str,
        type: Optional[str] = None,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        descending: bool = True,
    ) -> list[Transaction]:
        """List an owner's transactions with optional filters, ordered by date."""
        pass

    @abstractmethod
    def count_transactions(
        self,
        owner_id: str,
        type: Optional[str] = None,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count an owner's transactions matching the filters."""
        pass

    # Import job operations
    @abstractmethod
    def create_import_job(
        self,
        owner_id: str,
        filename: str,
        headers: list[str],
        preview_rows: list[dict[str, str]],
        source_rows: list[dict[str, str]],
        file_size: Optional[int] = None,
    ) -> ImportJob:
        """Create an import job in 'pending' status."""
        pass

    @abstractmethod
    def get_import_job(self, job_id: str, owner_id: Optional[str] = None) -> Optional[ImportJob]:
        """Get import job by ID, optionally scoped to an owner."""
        pass

    @abstractmethod
    def get_import_source_rows(self, job_id: str) -> list[dict[str, str]]:
        """Get the full uploaded row set of a job, in source order."""
        pass

    @abstractmethod
    def transition_import_job(
        self, job_id: str, from_statuses: tuple[str, ...], to_status: str, **fields: Any
    ) -> bool:
        """Move a job to to_status only if it is currently in one of from_statuses.

        The check and the write are a single conditional UPDATE. Extra keyword
        arguments are written to the same row. Returns False when the job was
        not in an accepted state.
        """
        pass

    @abstractmethod
    def list_import_jobs(self, owner_id: str, offset: int = 0, limit: Optional[int] = None) -> list[ImportJob]:
        """List an owner's import jobs, newest first."""
        pass

    @abstractmethod
    def count_import_jobs(self, owner_id: str) -> int:
        """Count an owner's import jobs."""
        pass

    # Import row outcome operations
    @abstractmethod
    def record_import_row(
        self,
        job_id: str,
        row_number: int,
        idempotency_key: str,
        raw_data: dict[str, str],
        status: str,
        mapped_data: Optional[dict[str, Any]] = None,
        error_message: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> ImportRow:
        """Append a row outcome to a job."""
        pass

    @abstractmethod
    def list_import_rows(self, job_id: str, status: Optional[str] = None) -> list[ImportRow]:
        """List a job's row outcomes by ascending row number."""
        pass

    @abstractmethod
    def count_import_rows(self, job_id: str) -> ImportCounts:
        """Count a job's row outcomes per status."""
        pass

    @abstractmethod
    def claim_import_key(
        self, owner_id: str, idempotency_key: str, job_id: str, row_number: int
    ) -> bool:
        """Insert the key into the owner's idempotency index.

        Returns False, leaving the enclosing unit usable, when the key is
        already present.
        """
        pass

    # Notification operations
    @abstractmethod
    def create_notification(
        self, owner_id: str, kind: str, title: str, message: str, payload: dict[str, Any]
    ) -> Notification:
        """Store a notification for an owner."""
        pass

    @abstractmethod
    def list_notifications(self, owner_id: str) -> list[Notification]:
        """List an owner's notifications, newest first."""
        pass
