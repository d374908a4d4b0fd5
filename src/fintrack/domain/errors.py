"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested entity does not exist or is not owned by the caller."""


class AccountNotFoundError(NotFoundError):
    """Referenced account does not exist or belongs to another owner."""


class InvalidStateError(DomainError):
    """Operation requested against an import job in the wrong lifecycle state."""


class StorageError(DomainError):
    """The underlying store failed."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def import_job_not_found(job_id: str) -> str:
    """Return message for missing import job."""
    return f"Import job {job_id} not found"


def invalid_job_state(job_id: str, status: str, expected: tuple[str, ...]) -> str:
    """Return message when an import job is not in an expected state."""
    return (
        f"Import job {job_id} is '{status}'; "
        f"expected {' or '.join(repr(s) for s in expected)}"
    )
