"""Domain model entities for fintrack.

These are pure data classes representing ledger concepts, independent of
database schema. Storage adapters convert their ORM rows into these before
handing them to services or callers.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    """Current time in UTC, used for every stored timestamp."""
    return datetime.now(UTC)


class TransactionType(str, Enum):
    """Direction of a ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class AccountKind(str, Enum):
    """Kind of account holding money."""

    CASH = "cash"
    BANK = "bank"
    MOBILE_MONEY = "mobile_money"
    CREDIT_CARD = "credit_card"


class PaymentMode(str, Enum):
    """How a transaction was paid."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    MOBILE_MONEY = "mobile_money"


class ImportStatus(str, Enum):
    """Lifecycle status of an import job."""

    PENDING = "pending"
    CONFIGURED = "configured"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RowStatus(str, Enum):
    """Terminal outcome of one imported row."""

    PROCESSED = "processed"
    FAILED = "failed"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: str
    owner_id: str
    name: str
    kind: AccountKind
    balance: Decimal
    currency: str
    is_default: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction domain entity."""

    id: str
    owner_id: str
    account_id: Optional[str]
    category_id: Optional[str]
    amount: Decimal
    type: TransactionType
    occurred_at: datetime
    description: Optional[str]
    mode: PaymentMode
    reference: Optional[str]
    notes: Optional[str]
    created_at: datetime

    @property
    def signed_amount(self) -> Decimal:
        """Delta this transaction contributes to its account."""
        return signed_delta(self.type, self.amount)


@dataclass(frozen=True)
class ImportJob:
    """Import job domain entity."""

    id: str
    owner_id: str
    filename: str
    file_size: Optional[int]
    total_rows: int
    status: ImportStatus
    headers: list[str]
    preview_rows: list[dict[str, str]]
    mapping: Optional[dict[str, str]]
    processed_rows: int
    successful_rows: int
    failed_rows: int
    duplicate_rows: int
    error_log: Optional[str]
    created_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]


@dataclass(frozen=True)
class ImportRow:
    """Recorded outcome for one source row of an import job."""

    id: str
    job_id: str
    row_number: int
    idempotency_key: str
    raw_data: dict[str, str]
    mapped_data: Optional[dict[str, Any]]
    status: RowStatus
    error_message: Optional[str]
    transaction_id: Optional[str]


@dataclass(frozen=True)
class ImportCounts:
    """Per-status counts derived from the row outcome log."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    duplicates: int = 0


@dataclass(frozen=True)
class Notification:
    """Notification emitted to an owner."""

    id: str
    owner_id: str
    kind: str
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None


def signed_delta(txn_type: TransactionType, amount: Decimal) -> Decimal:
    """Return +amount for income and -amount for expense."""
    if TransactionType(txn_type) is TransactionType.INCOME:
        return amount
    return -amount
