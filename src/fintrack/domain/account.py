"""Account domain service."""

import logging
from decimal import Decimal
from typing import Optional
from fintrack.database.base import Database
from fintrack.domain.entities import Account as AccountEntity, AccountKind
from fintrack.domain.errors import AccountNotFoundError, ValidationError, account_not_found

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing accounts.

    Accounts always start at a zero balance; only ledger transactions move it.
    """

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        owner_id: str,
        name: str,
        kind: AccountKind | str = AccountKind.CASH,
        currency: str = "SLL",
        is_default: bool = False,
    ) -> AccountEntity:
        """Create a new account.

        Args:
            owner_id: Owner of the account
            name: Account name (2-100 characters)
            kind: cash, bank, mobile_money or credit_card
            currency: Three-letter currency code
            is_default: Make this the owner's default account

        Returns:
            The created account

        Raises:
            ValidationError: If a field is invalid or the name is taken
        """
        name = (name or "").strip()
        if not 2 <= len(name) <= 100:
            raise ValidationError("Account name must be between 2 and 100 characters")
        try:
            account_kind = AccountKind(kind)
        except ValueError:
            allowed = ", ".join(k.value for k in AccountKind)
            raise ValidationError(f"Account type must be one of: {allowed}") from None
        currency = (currency or "").strip().upper()
        if len(currency) != 3:
            raise ValidationError("Currency must be a three-letter code")

        for acc in self.db.list_accounts(owner_id):
            if acc.name.casefold() == name.casefold():
                raise ValidationError(f"Account with name '{name}' already exists")

        account = self.db.create_account(
            owner_id=owner_id,
            name=name,
            kind=account_kind,
            currency=currency,
            is_default=is_default,
        )
        logger.info(
            "Account created",
            extra={
                "owner_id": owner_id,
                "account_id": account.id,
                "action": "account_create",
                "component": "AccountService",
            },
        )
        return account

    def get_account(self, owner_id: str, account_id: str) -> Optional[AccountEntity]:
        """Get an owner's account by ID, or None."""
        return self.db.get_account(account_id, owner_id=owner_id)

    def require_account(self, owner_id: str, account_id: str) -> AccountEntity:
        """Get an owner's account by ID.

        Raises:
            AccountNotFoundError: If missing or owned by someone else
        """
        account = self.get_account(owner_id, account_id)
        if account is None:
            raise AccountNotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, owner_id: str) -> list[AccountEntity]:
        """List an owner's accounts, default first."""
        return self.db.list_accounts(owner_id)

    def delete_account(self, owner_id: str, account_id: str) -> None:
        """Delete an account.

        Its transactions stay in the ledger with no account reference, so
        they stop contributing to any balance.

        Raises:
            AccountNotFoundError: If missing or owned by someone else
        """
        self.require_account(owner_id, account_id)
        self.db.delete_account(account_id)
        logger.info(
            "Account deleted",
            extra={
                "owner_id": owner_id,
                "account_id": account_id,
                "action": "account_delete",
                "component": "AccountService",
            },
        )

    def balance_drift(self, owner_id: str, account_id: str) -> Decimal:
        """Stored balance minus the signed sum of the account's transactions.

        Zero whenever the ledger is consistent.
        """
        account = self.require_account(owner_id, account_id)
        return account.balance - self.db.get_ledger_sum(account_id)
