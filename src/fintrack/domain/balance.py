"""Balance mutation: the only writer of account balances."""

import logging
from decimal import Decimal

from fintrack.database.base import Database
from fintrack.domain.errors import AccountNotFoundError, account_not_found

logger = logging.getLogger(__name__)


class BalanceMutator:
    """Applies signed deltas to account balances.

    Each call joins the caller's atomic unit and issues a single
    ``balance = balance + delta`` statement, so concurrent mutations of the
    same account never lose an update.
    """

    def __init__(self, db: Database):
        """Initialize balance mutator.

        Args:
            db: Database instance
        """
        self.db = db

    def apply_delta(self, account_id: str, signed_amount: Decimal) -> None:
        """Add signed_amount to the account's stored balance.

        Callers skip the call for transactions without an account.

        Raises:
            AccountNotFoundError: If the account does not exist
            StorageError: If the store fails
        """
        if account_id is None:
            raise ValueError("apply_delta requires an account id")

        with self.db.atomic():
            if not self.db.increment_account_balance(account_id, signed_amount):
                raise AccountNotFoundError(account_not_found(account_id))

        logger.debug(
            "Account balance adjusted",
            extra={
                "account_id": account_id,
                "delta": str(signed_amount),
                "action": "balance_delta",
                "component": "BalanceMutator",
            },
        )
