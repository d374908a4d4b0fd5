"""Tests for the account service."""

from decimal import Decimal

import pytest

from fintrack.domain.entities import AccountKind
from fintrack.domain.errors import AccountNotFoundError, ValidationError
from conftest import OTHER_OWNER, OWNER


def test_create_account_defaults(account_service):
    """Test that new accounts start empty with default settings."""
    account = account_service.create_account(OWNER, name="Wallet")

    assert account.owner_id == OWNER
    assert account.kind == AccountKind.CASH
    assert account.balance == Decimal("0")
    assert account.currency == "SLL"
    assert account.is_default is False


def test_create_account_normalizes_currency(account_service):
    """Test currency upper-casing."""
    account = account_service.create_account(OWNER, name="Card", kind="credit_card", currency="usd")

    assert account.currency == "USD"
    assert account.kind == AccountKind.CREDIT_CARD


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "W"},
        {"name": "x" * 101},
        {"name": "Wallet", "kind": "piggy_bank"},
        {"name": "Wallet", "currency": "LEONE"},
    ],
)
def test_create_account_validation(account_service, kwargs):
    """Test name, kind and currency validation."""
    with pytest.raises(ValidationError):
        account_service.create_account(OWNER, **kwargs)


def test_duplicate_name_is_per_owner(account_service):
    """Test that names are unique per owner, ignoring case."""
    account_service.create_account(OWNER, name="Wallet")

    with pytest.raises(ValidationError, match="already exists"):
        account_service.create_account(OWNER, name="wallet")

    assert account_service.create_account(OTHER_OWNER, name="Wallet").owner_id == OTHER_OWNER


def test_single_default_account(account_service):
    """Test that a new default account replaces the old one and lists first."""
    first = account_service.create_account(OWNER, name="First", is_default=True)
    second = account_service.create_account(OWNER, name="Second", is_default=True)
    account_service.create_account(OWNER, name="Third")

    accounts = account_service.list_accounts(OWNER)

    assert accounts[0].id == second.id
    assert account_service.require_account(OWNER, first.id).is_default is False


def test_get_account_is_owner_scoped(account_service, sample_account):
    """Test that another owner cannot see the account."""
    assert account_service.get_account(OWNER, sample_account.id).id == sample_account.id
    assert account_service.get_account(OTHER_OWNER, sample_account.id) is None
    with pytest.raises(AccountNotFoundError):
        account_service.require_account(OTHER_OWNER, sample_account.id)


def test_delete_detaches_transactions(account_service, transaction_service, sample_account):
    """Test that deleting an account keeps its transactions unassigned."""
    txn = transaction_service.create_transaction(
        OWNER, amount=Decimal("25"), type="income", account_id=sample_account.id
    )

    account_service.delete_account(OWNER, sample_account.id)

    assert account_service.get_account(OWNER, sample_account.id) is None
    assert transaction_service.require_transaction(OWNER, txn.id).account_id is None


def test_delete_not_owned(account_service, sample_account):
    """Test that another owner cannot delete the account."""
    with pytest.raises(AccountNotFoundError):
        account_service.delete_account(OTHER_OWNER, sample_account.id)


def test_balance_drift_detects_direct_writes(account_service, transaction_service, temp_db, sample_account):
    """Test the consistency check against the ledger."""
    transaction_service.create_transaction(
        OWNER, amount=Decimal("40"), type="income", account_id=sample_account.id
    )
    assert account_service.balance_drift(OWNER, sample_account.id) == Decimal("0")

    temp_db.increment_account_balance(sample_account.id, Decimal("1.50"))

    assert account_service.balance_drift(OWNER, sample_account.id) == Decimal("1.50")
