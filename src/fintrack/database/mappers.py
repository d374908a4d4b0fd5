"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so ORM instances never leave the
database package.
"""

from fintrack.domain import entities as domain
from fintrack.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
    ImportJob as ORMImportJob,
    ImportRow as ORMImportRow,
    Notification as ORMNotification,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        name=orm_account.name,
        kind=domain.AccountKind(orm_account.kind),
        balance=orm_account.balance,
        currency=orm_account.currency,
        is_default=orm_account.is_default,
        created_at=orm_account.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        owner_id=orm_transaction.owner_id,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        amount=orm_transaction.amount,
        type=domain.TransactionType(orm_transaction.type),
        occurred_at=orm_transaction.occurred_at,
        description=orm_transaction.description,
        mode=domain.PaymentMode(orm_transaction.mode),
        reference=orm_transaction.reference,
        notes=orm_transaction.notes,
        created_at=orm_transaction.created_at,
    )


def import_job_to_domain(orm_job: ORMImportJob) -> domain.ImportJob:
    """Convert SQLAlchemy ImportJob model to domain ImportJob entity."""
    return domain.ImportJob(
        id=orm_job.id,
        owner_id=orm_job.owner_id,
        filename=orm_job.filename,
        file_size=orm_job.file_size,
        total_rows=orm_job.total_rows,
        status=domain.ImportStatus(orm_job.status),
        headers=list(orm_job.headers or []),
        preview_rows=list(orm_job.preview_rows or []),
        mapping=dict(orm_job.mapping) if orm_job.mapping is not None else None,
        processed_rows=orm_job.processed_rows,
        successful_rows=orm_job.successful_rows,
        failed_rows=orm_job.failed_rows,
        duplicate_rows=orm_job.duplicate_rows,
        error_log=orm_job.error_log,
        created_at=orm_job.created_at,
        started_at=orm_job.started_at,
        completed_at=orm_job.completed_at,
    )


def import_row_to_domain(orm_row: ORMImportRow) -> domain.ImportRow:
    """Convert SQLAlchemy ImportRow model to domain ImportRow entity."""
    return domain.ImportRow(
        id=orm_row.id,
        job_id=orm_row.job_id,
        row_number=orm_row.row_number,
        idempotency_key=orm_row.idempotency_key,
        raw_data=dict(orm_row.raw_data),
        mapped_data=dict(orm_row.mapped_data) if orm_row.mapped_data is not None else None,
        status=domain.RowStatus(orm_row.status),
        error_message=orm_row.error_message,
        transaction_id=orm_row.transaction_id,
    )


def notification_to_domain(orm_notification: ORMNotification) -> domain.Notification:
    """Convert SQLAlchemy Notification model to domain Notification entity."""
    return domain.Notification(
        id=orm_notification.id,
        owner_id=orm_notification.owner_id,
        kind=orm_notification.kind,
        title=orm_notification.title,
        message=orm_notification.message,
        payload=dict(orm_notification.payload or {}),
        created_at=orm_notification.created_at,
    )
