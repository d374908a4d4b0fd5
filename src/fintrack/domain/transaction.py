"""Transaction domain service."""

import logging
import math
from typing import Any, Optional
from datetime import datetime
from decimal import Decimal, InvalidOperation
from fintrack.database.base import Database
from fintrack.domain.balance import BalanceMutator
from fintrack.domain.entities import (
    PaymentMode,
    Transaction as TransactionEntity,
    TransactionType,
    signed_delta,
    utc_now,
)
from fintrack.domain.errors import (
    AccountNotFoundError,
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 255
MAX_REFERENCE_LENGTH = 100
MAX_PAGE_SIZE = 100

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999999.99")

UPDATABLE_FIELDS = frozenset(
    {
        "amount",
        "type",
        "account_id",
        "category_id",
        "occurred_at",
        "description",
        "mode",
        "reference",
        "notes",
    }
)
NULLABLE_FIELDS = frozenset({"account_id", "category_id", "description", "reference", "notes"})


def _validate_amount(amount: Any) -> Decimal:
    if isinstance(amount, bool) or amount is None:
        raise ValidationError("Amount is required")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation:
        raise ValidationError(f"Amount '{amount}' is not a number") from None
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be a positive number")
    if value > MAX_AMOUNT:
        raise ValidationError(f"Amount must not exceed {MAX_AMOUNT}")
    if value != value.quantize(CENT):
        raise ValidationError(f"Amount '{value}' has more than two decimal places")
    return value.quantize(CENT)


def _validate_type(txn_type: Any) -> TransactionType:
    try:
        return TransactionType(txn_type)
    except ValueError:
        raise ValidationError("Type must be either income or expense") from None


def _validate_mode(mode: Any) -> PaymentMode:
    try:
        return PaymentMode(mode)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMode)
        raise ValidationError(f"Mode must be one of: {allowed}") from None


def _validate_text(name: str, value: Optional[str], max_length: int) -> Optional[str]:
    if value is not None and len(value) > max_length:
        raise ValidationError(f"{name} must not exceed {max_length} characters")
    return value


class TransactionService:
    """Sole writer of ledger transactions.

    Every mutation and its balance deltas commit together in one atomic
    unit, so an account's balance always equals the signed sum of the
    transactions referencing it.
    """

    def __init__(self, db: Database, balance_mutator: Optional[BalanceMutator] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            balance_mutator: Optional BalanceMutator sharing the same database
        """
        self.db = db
        self.balance_mutator = balance_mutator or BalanceMutator(db)

    def _require_owned_account(self, owner_id: str, account_id: str) -> None:
        if self.db.get_account(account_id, owner_id=owner_id) is None:
            raise AccountNotFoundError(account_not_found(account_id))

    def create_transaction(
        self,
        owner_id: str,
        amount: Decimal,
        type: TransactionType | str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
        description: Optional[str] = None,
        mode: PaymentMode | str = PaymentMode.CASH,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> TransactionEntity:
        """Create a transaction and apply its delta to the referenced account.

        Args:
            owner_id: Owner of the transaction
            amount: Positive amount
            type: "income" or "expense"
            account_id: Optional account ID; must belong to owner_id
            category_id: Optional opaque category reference
            occurred_at: When the transaction happened (defaults to now)
            description: Optional description
            mode: Payment mode
            reference: Optional external reference
            notes: Optional notes

        Returns:
            The persisted transaction

        Raises:
            ValidationError: If amount, type, mode or text lengths are invalid
            AccountNotFoundError: If the account does not belong to owner_id
            StorageError: If the store fails; nothing is committed
        """
        amount = _validate_amount(amount)
        txn_type = _validate_type(type)
        payment_mode = _validate_mode(mode)
        _validate_text("Description", description, MAX_DESCRIPTION_LENGTH)
        _validate_text("Reference", reference, MAX_REFERENCE_LENGTH)

        with self.db.atomic():
            if account_id is not None:
                self._require_owned_account(owner_id, account_id)

            txn = self.db.create_transaction(
                owner_id=owner_id,
                amount=amount,
                type=txn_type,
                occurred_at=occurred_at or utc_now(),
                account_id=account_id,
                category_id=category_id,
                description=description,
                mode=payment_mode,
                reference=reference,
                notes=notes,
            )
            if account_id is not None:
                self.balance_mutator.apply_delta(account_id, signed_delta(txn_type, amount))

        logger.info(
            "Transaction created",
            extra={
                "owner_id": owner_id,
                "transaction_id": txn.id,
                "account_id": account_id,
                "action": "transaction_create",
                "component": "TransactionService",
            },
        )
        return txn

    def get_transaction(self, owner_id: str, transaction_id: str) -> Optional[TransactionEntity]:
        """Get an owner's transaction by ID, or None."""
        return self.db.get_transaction(transaction_id, owner_id=owner_id)

    def require_transaction(self, owner_id: str, transaction_id: str) -> TransactionEntity:
        """Get an owner's transaction by ID.

        Raises:
            NotFoundError: If missing or owned by someone else
        """
        txn = self.get_transaction(owner_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def _validate_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown transaction fields: {', '.join(sorted(unknown))}")

        validated: dict[str, Any] = {}
        for name, value in changes.items():
            if value is None and name not in NULLABLE_FIELDS:
                raise ValidationError(f"Field '{name}' cannot be cleared")
            if name == "amount":
                value = _validate_amount(value)
            elif name == "type":
                value = _validate_type(value)
            elif name == "mode":
                value = _validate_mode(value)
            elif name == "description":
                _validate_text("Description", value, MAX_DESCRIPTION_LENGTH)
            elif name == "reference":
                _validate_text("Reference", value, MAX_REFERENCE_LENGTH)
            validated[name] = value
        return validated

    def update_transaction(self, owner_id: str, transaction_id: str, **changes: Any) -> TransactionEntity:
        """Update a transaction and move its balance contribution.

        Only the given fields change; passing None clears a nullable field
        (for example ``account_id=None`` detaches the transaction).

        The old delta is reverted on the old account before the new delta is
        applied to the new account, all in one atomic unit.

        Raises:
            ValidationError: If a new value is invalid
            NotFoundError: If the transaction is missing or not owned
            AccountNotFoundError: If the new account does not belong to owner_id
        """
        validated = self._validate_changes(changes)

        with self.db.atomic():
            old = self.require_transaction(owner_id, transaction_id)

            new_account_id = validated.get("account_id", old.account_id)
            if "account_id" in validated and new_account_id is not None:
                self._require_owned_account(owner_id, new_account_id)

            # 1. revert the old contribution
            if old.account_id is not None:
                self.balance_mutator.apply_delta(old.account_id, -old.signed_amount)

            # 2. persist the new field values
            updated = self.db.update_transaction(transaction_id, validated)

            # 3. apply the new contribution
            if updated.account_id is not None:
                self.balance_mutator.apply_delta(updated.account_id, updated.signed_amount)

        logger.info(
            "Transaction updated",
            extra={
                "owner_id": owner_id,
                "transaction_id": transaction_id,
                "old_account_id": old.account_id,
                "new_account_id": updated.account_id,
                "fields": sorted(validated),
                "action": "transaction_update",
                "component": "TransactionService",
            },
        )
        return updated

    def delete_transaction(self, owner_id: str, transaction_id: str) -> None:
        """Delete a transaction and revert its balance contribution.

        Raises:
            NotFoundError: If the transaction is missing or not owned
        """
        with self.db.atomic():
            txn = self.require_transaction(owner_id, transaction_id)
            if txn.account_id is not None:
                self.balance_mutator.apply_delta(txn.account_id, -txn.signed_amount)
            self.db.delete_transaction(transaction_id)

        logger.info(
            "Transaction deleted",
            extra={
                "owner_id": owner_id,
                "transaction_id": transaction_id,
                "account_id": txn.account_id,
                "action": "transaction_delete",
                "component": "TransactionService",
            },
        )

    def list_transactions(
        self,
        owner_id: str,
        type: Optional[str] = None,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
        sort: str = "desc",
    ) -> dict[str, Any]:
        """List an owner's transactions with filters and pagination.

        Returns:
            Dict with "transactions" and "pagination" (page, limit, total, pages)
        """
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if sort not in ("asc", "desc"):
            raise ValidationError("Sort must be 'asc' or 'desc'")
        txn_type = _validate_type(type) if type is not None else None

        filters = dict(
            type=txn_type,
            account_id=account_id,
            category_id=category_id,
            start=start,
            end=end,
        )
        transactions = self.db.list_transactions(
            owner_id,
            offset=(page - 1) * limit,
            limit=limit,
            descending=sort == "desc",
            **filters,
        )
        total = self.db.count_transactions(owner_id, **filters)
        return {
            "transactions": transactions,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }
