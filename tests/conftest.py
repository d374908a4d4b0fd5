"""Shared pytest fixtures for fintrack tests."""

import logging
import tempfile
import os
import pytest

from fintrack.config import Settings
from fintrack.database.factories import create_sqlite_database
from fintrack.domain.account import AccountService
from fintrack.domain.import_job import ImportService
from fintrack.domain.notifier import Notifier
from fintrack.domain.transaction import TransactionService

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


class RecordingNotifier(Notifier):
    """Notifier that keeps every event in memory."""

    def __init__(self):
        self.events = []

    def notify(self, owner_id, kind, payload):
        self.events.append((owner_id, kind, payload))


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Drop handlers the CLI attaches to the root logger during a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def notifier():
    """Create a notifier that records events."""
    return RecordingNotifier()


@pytest.fixture
def import_service(temp_db, transaction_service, account_service, notifier):
    """Create an ImportService with its own background runner."""
    service = ImportService(
        temp_db,
        transaction_service=transaction_service,
        account_service=account_service,
        notifier=notifier,
        settings=Settings(import_workers=2),
    )
    yield service
    service.close()


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    return account_service.create_account(OWNER, name="Wallet")


@pytest.fixture
def second_account(account_service):
    """Create a second account for the same owner."""
    return account_service.create_account(OWNER, name="Savings", kind="bank")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def sample_csv(tmp_path):
    """Write a small bank export and return its path."""
    path = tmp_path / "statement.csv"
    path.write_text(
        "Date,Amount,Description,Type,Account,Ref\n"
        "2024-01-05,1000.00,Salary,credit,Wallet,R1\n"
        "2024-01-06,50.00,Groceries,debit,Wallet,R2\n"
        "2024-01-07,abc,Broken row,debit,Wallet,R3\n"
        "2024-01-08,20.00,Taxi,expense,Wallet,R4\n"
        "2024-01-09,5.00,Coffee,,Unknown Account,R5\n",
        encoding="utf-8",
    )
    return path
