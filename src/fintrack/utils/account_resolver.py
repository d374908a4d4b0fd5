"""Utility for resolving account names to IDs."""

from typing import Iterable, Optional

from fintrack.domain.entities import Account
from fintrack.domain.errors import AccountNotFoundError


def match_account(accounts: Iterable[Account], account: str) -> Optional[Account]:
    """Find an account by ID, then by case-insensitive name.

    Args:
        accounts: Candidate accounts (already scoped to one owner)
        account: Account ID or name as written by the user or a CSV cell

    Returns:
        Matching account or None
    """
    wanted = (account or "").strip()
    if not wanted:
        return None

    candidates = list(accounts)
    for acc in candidates:
        if acc.id == wanted:
            return acc

    lowered = wanted.casefold()
    for acc in candidates:
        if acc.name.casefold() == lowered:
            return acc
    return None


def resolve_account(account_service, owner_id: str, account: str) -> str:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        owner_id: Owner whose accounts are searched
        account: Account name or ID

    Returns:
        Account ID

    Raises:
        AccountNotFoundError: If account is not found
    """
    match = match_account(account_service.list_accounts(owner_id), account)
    if match is None:
        raise AccountNotFoundError(f"Account '{account}' not found")
    return match.id
