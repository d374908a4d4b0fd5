"""CSV import job domain service.

An import job moves through ``pending -> configured -> processing ->
completed | failed``. The foreground calls (upload, configure_mapping,
preview, process) are synchronous; the per-row work runs as one background
task per job on an :class:`~fintrack.jobs.runner.ImportRunner`.
"""

import logging
import math
import threading
from pathlib import Path
from typing import Any, Optional

from fintrack.config import Settings
from fintrack.database.base import Database
from fintrack.domain.account import AccountService
from fintrack.domain.entities import (
    Account,
    ImportJob as ImportJobEntity,
    ImportStatus,
    PaymentMode,
    RowStatus,
    utc_now,
)
from fintrack.domain.errors import (
    DomainError,
    InvalidStateError,
    NotFoundError,
    StorageError,
    ValidationError,
    import_job_not_found,
    invalid_job_state,
)
from fintrack.domain.notifier import IMPORT_COMPLETE, LogNotifier, Notifier, notify_quietly
from fintrack.domain.row_normalizer import ColumnMapping, normalize_row
from fintrack.domain.transaction import TransactionService
from fintrack.jobs.runner import ImportRunner
from fintrack.utils.account_resolver import match_account
from fintrack.utils.csv_reader import read_csv_file

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Duplicate transaction detected"
CANCELLED_MESSAGE = "Import cancelled"
MAX_HISTORY_PAGE_SIZE = 100

# Header substrings that suggest a column for each logical field.
COLUMN_HINTS = {
    "date": ("date", "time"),
    "amount": ("amount", "value", "sum"),
    "description": ("desc", "detail", "memo"),
    "type": ("type",),
    "category": ("category",),
    "account": ("account",),
    "reference": ("ref", "id"),
}


class ImportCancelled(Exception):
    """Raised inside a background run when cancellation was requested."""


def suggest_columns(headers: list[str]) -> dict[str, str]:
    """Guess a source column for each logical field.

    Case-insensitive substring match; each header is suggested at most once.
    The result is advisory only.
    """
    suggestions: dict[str, str] = {}
    used: set[str] = set()
    for field_name, hints in COLUMN_HINTS.items():
        for header in headers:
            if header in used:
                continue
            lowered = header.casefold()
            if any(hint in lowered for hint in hints):
                suggestions[field_name] = header
                used.add(header)
                break
    return suggestions


class ImportService:
    """Service for importing transactions from CSV rows."""

    def __init__(
        self,
        db: Database,
        transaction_service: Optional[TransactionService] = None,
        account_service: Optional[AccountService] = None,
        notifier: Optional[Notifier] = None,
        runner: Optional[ImportRunner] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize import service.

        Args:
            db: Database instance
            transaction_service: Service used to create imported transactions
            account_service: Service used to resolve account cells
            notifier: Receives the completion event (defaults to logging only)
            runner: Background runner (a private one is created if omitted)
            settings: Preview size, upload limit and worker count
        """
        self.db = db
        self.settings = settings or Settings()
        self.transaction_service = transaction_service or TransactionService(db)
        self.account_service = account_service or AccountService(db)
        self.notifier = notifier or LogNotifier()
        self.runner = runner or ImportRunner(max_workers=self.settings.import_workers)

    # Foreground operations

    def upload(
        self,
        owner_id: str,
        rows: list[dict[str, Any]],
        filename: str,
        headers: Optional[list[str]] = None,
        file_size: Optional[int] = None,
    ) -> dict[str, Any]:
        """Create a pending import job from already-tokenized rows.

        Rows are stored as given; nothing is normalized or validated yet.

        Returns:
            Dict with job_id, total_rows, headers, preview and suggestions

        Raises:
            ValidationError: If rows is empty
        """
        if not rows:
            raise ValidationError("CSV file is empty")

        if headers is None:
            headers = list(rows[0].keys())
        source_rows = [
            {str(key): "" if value is None else str(value) for key, value in row.items()}
            for row in rows
        ]
        preview_rows = source_rows[: self.settings.preview_rows]

        job = self.db.create_import_job(
            owner_id=owner_id,
            filename=filename,
            headers=list(headers),
            preview_rows=preview_rows,
            source_rows=source_rows,
            file_size=file_size,
        )
        logger.info(
            "Import job created",
            extra={
                "owner_id": owner_id,
                "job_id": job.id,
                "total_rows": job.total_rows,
                "action": "import_upload",
                "component": "ImportService",
            },
        )
        return {
            "job_id": job.id,
            "total_rows": job.total_rows,
            "headers": job.headers,
            "preview": job.preview_rows,
            "suggestions": suggest_columns(job.headers),
        }

    def upload_file(self, owner_id: str, csv_file_path: str) -> dict[str, Any]:
        """Read a CSV file and upload its rows.

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If the file is not CSV, too large or empty
        """
        headers, rows, file_size = read_csv_file(
            csv_file_path, max_bytes=self.settings.max_upload_bytes
        )
        return self.upload(
            owner_id,
            rows,
            filename=Path(csv_file_path).name,
            headers=headers,
            file_size=file_size,
        )

    def get_job(self, owner_id: str, job_id: str) -> Optional[ImportJobEntity]:
        """Get an owner's import job by ID, or None."""
        return self.db.get_import_job(job_id, owner_id=owner_id)

    def require_job(self, owner_id: str, job_id: str) -> ImportJobEntity:
        """Get an owner's import job by ID.

        Raises:
            NotFoundError: If missing or owned by someone else
        """
        job = self.get_job(owner_id, job_id)
        if job is None:
            raise NotFoundError(import_job_not_found(job_id))
        return job

    def configure_mapping(
        self, job_id: str, owner_id: str, mapping: ColumnMapping | dict[str, Any]
    ) -> ImportJobEntity:
        """Store the column mapping and move the job to 'configured'.

        Raises:
            NotFoundError: If the job is missing or not owned
            InvalidStateError: If the job is not pending
            ValidationError: If the mapping is malformed or names unknown columns
        """
        job = self.require_job(owner_id, job_id)
        expected = (ImportStatus.PENDING.value,)
        if job.status != ImportStatus.PENDING:
            raise InvalidStateError(invalid_job_state(job_id, job.status.value, expected))

        if not isinstance(mapping, ColumnMapping):
            mapping = ColumnMapping.from_dict(mapping)
        missing = mapping.missing_columns(job.headers)
        if missing:
            raise ValidationError(f"Mapped columns not found in file: {', '.join(missing)}")

        if not self.db.transition_import_job(
            job_id, expected, ImportStatus.CONFIGURED, mapping=mapping.to_dict()
        ):
            current = self.require_job(owner_id, job_id)
            raise InvalidStateError(invalid_job_state(job_id, current.status.value, expected))

        logger.info(
            "Import mapping configured",
            extra={
                "owner_id": owner_id,
                "job_id": job_id,
                "mapping": mapping.to_dict(),
                "action": "import_configure",
                "component": "ImportService",
            },
        )
        return self.require_job(owner_id, job_id)

    def preview(self, job_id: str, owner_id: str) -> dict[str, Any]:
        """Normalize the stored preview rows without writing anything.

        Returns:
            Dict with job_id, rows (row_number, fields, idempotency_key,
            valid, errors, normalized) and summary (total, valid, invalid)

        Raises:
            NotFoundError: If the job is missing or not owned
            InvalidStateError: If no mapping has been configured
        """
        job = self.require_job(owner_id, job_id)
        if job.status == ImportStatus.PENDING or job.mapping is None:
            raise InvalidStateError(
                invalid_job_state(
                    job_id,
                    job.status.value,
                    tuple(s.value for s in ImportStatus if s != ImportStatus.PENDING),
                )
            )

        mapping = ColumnMapping.from_dict(job.mapping)
        rows = []
        for row_number, raw in enumerate(job.preview_rows, start=1):
            normalized = normalize_row(raw, mapping)
            rows.append(
                {
                    "row_number": row_number,
                    "fields": normalized.fields,
                    "idempotency_key": normalized.idempotency_key,
                    "valid": normalized.valid,
                    "errors": list(normalized.errors),
                    "normalized": normalized.candidate.to_payload() if normalized.valid else None,
                }
            )

        valid = sum(1 for row in rows if row["valid"])
        return {
            "job_id": job_id,
            "rows": rows,
            "summary": {"total": len(rows), "valid": valid, "invalid": len(rows) - valid},
        }

    def process(self, job_id: str, owner_id: str) -> ImportJobEntity:
        """Move a configured job to 'processing' and start its background run.

        Returns immediately; poll :meth:`status` or call :meth:`wait`.

        Raises:
            NotFoundError: If the job is missing or not owned
            InvalidStateError: If the job is not configured, including any
                job that already reached a terminal state
        """
        job = self.require_job(owner_id, job_id)
        expected = (ImportStatus.CONFIGURED.value,)
        if job.status != ImportStatus.CONFIGURED:
            raise InvalidStateError(invalid_job_state(job_id, job.status.value, expected))

        # The conditional update is what admits exactly one run per job.
        if not self.db.transition_import_job(
            job_id, expected, ImportStatus.PROCESSING, started_at=utc_now()
        ):
            current = self.require_job(owner_id, job_id)
            raise InvalidStateError(invalid_job_state(job_id, current.status.value, expected))

        try:
            self.runner.submit(job_id, lambda cancel_event: self._run_job(job_id, cancel_event))
        except Exception as e:
            self._fail_job(job_id, f"Could not start import: {e}")
            raise

        logger.info(
            "Import processing started",
            extra={
                "owner_id": owner_id,
                "job_id": job_id,
                "action": "import_process",
                "component": "ImportService",
            },
        )
        return self.require_job(owner_id, job_id)

    def wait(self, job_id: str, timeout: Optional[float] = None) -> None:
        """Block until the background run for job_id finishes."""
        self.runner.wait(job_id, timeout=timeout)

    def cancel(self, job_id: str, owner_id: str) -> bool:
        """Ask a running job to stop at its next row boundary.

        Rows already processed keep their outcomes; the job ends 'failed'
        with "Import cancelled" in its error log.

        Returns:
            False if this process has no live task for the job

        Raises:
            NotFoundError: If the job is missing or not owned
            InvalidStateError: If the job is not processing
        """
        job = self.require_job(owner_id, job_id)
        if job.status != ImportStatus.PROCESSING:
            raise InvalidStateError(
                invalid_job_state(job_id, job.status.value, (ImportStatus.PROCESSING.value,))
            )
        return self.runner.cancel(job_id)

    def status(self, job_id: str, owner_id: str) -> dict[str, Any]:
        """Read-only projection of a job with counts and row errors.

        Counts are derived from the recorded row outcomes, so they are
        current while the job is still processing.

        Raises:
            NotFoundError: If the job is missing or not owned
        """
        job = self.require_job(owner_id, job_id)
        counts = self.db.count_import_rows(job_id)
        errors = [
            {"row": row.row_number, "error": row.error_message}
            for row in self.db.list_import_rows(job_id, status=RowStatus.FAILED)
        ]
        return {
            "job_id": job.id,
            "filename": job.filename,
            "status": job.status.value,
            "total_rows": job.total_rows,
            "processed_rows": counts.processed,
            "successful_rows": counts.succeeded,
            "failed_rows": counts.failed,
            "duplicate_rows": counts.duplicates,
            "error_log": job.error_log,
            "created_at": job.created_at,
            "started_at": job.started_at,
            "completed_at": job.completed_at,
            "errors": errors,
        }

    def history(self, owner_id: str, page: int = 1, limit: int = 10) -> dict[str, Any]:
        """List an owner's import jobs, newest first.

        Returns:
            Dict with "imports" and "pagination" (page, limit, total, pages)
        """
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if not 1 <= limit <= MAX_HISTORY_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_HISTORY_PAGE_SIZE}")

        jobs = self.db.list_import_jobs(owner_id, offset=(page - 1) * limit, limit=limit)
        total = self.db.count_import_jobs(owner_id)
        return {
            "imports": jobs,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    def close(self) -> None:
        """Cancel outstanding runs and stop the runner."""
        self.runner.shutdown(wait=True)

    # Background processing

    def _run_job(self, job_id: str, cancel_event: threading.Event) -> None:
        """Process every stored row of a job in ascending row order."""
        try:
            job = self.db.get_import_job(job_id)
            mapping = ColumnMapping.from_dict(job.mapping)
            rows = self.db.get_import_source_rows(job_id)
            accounts = self.account_service.list_accounts(job.owner_id)

            for row_number, raw in enumerate(rows, start=1):
                if cancel_event.is_set():
                    raise ImportCancelled()
                self._process_row(job, mapping, accounts, row_number, raw)

            counts = self.db.count_import_rows(job_id)
            completed = self.db.transition_import_job(
                job_id,
                (ImportStatus.PROCESSING.value,),
                ImportStatus.COMPLETED,
                completed_at=utc_now(),
                processed_rows=counts.processed,
                successful_rows=counts.succeeded,
                failed_rows=counts.failed,
                duplicate_rows=counts.duplicates,
            )
            if not completed:
                logger.warning(
                    "Import job left processing before completion",
                    extra={"job_id": job_id, "action": "import_complete", "component": "ImportService"},
                )
                return

            logger.info(
                "Import job completed",
                extra={
                    "owner_id": job.owner_id,
                    "job_id": job_id,
                    "succeeded": counts.succeeded,
                    "failed": counts.failed,
                    "duplicates": counts.duplicates,
                    "action": "import_complete",
                    "component": "ImportService",
                },
            )
            notify_quietly(
                self.notifier,
                job.owner_id,
                IMPORT_COMPLETE,
                {
                    "job_id": job_id,
                    "succeeded": counts.succeeded,
                    "failed": counts.failed,
                    "duplicates": counts.duplicates,
                },
            )
        except ImportCancelled:
            logger.info(
                "Import job cancelled",
                extra={"job_id": job_id, "action": "import_cancel", "component": "ImportService"},
            )
            self._fail_job(job_id, CANCELLED_MESSAGE)
        except Exception as e:
            logger.error(
                "Import job aborted",
                exc_info=True,
                extra={"job_id": job_id, "action": "import_abort", "component": "ImportService"},
            )
            self._fail_job(job_id, str(e) or type(e).__name__)
        finally:
            self.db.disconnect()

    def _process_row(
        self,
        job: ImportJobEntity,
        mapping: ColumnMapping,
        accounts: list[Account],
        row_number: int,
        raw: dict[str, str],
    ) -> None:
        normalized = normalize_row(raw, mapping)
        key = normalized.idempotency_key

        if not normalized.valid:
            self._record_failure(job, row_number, key, raw, "; ".join(normalized.errors))
            return

        candidate = normalized.candidate
        account = match_account(accounts, candidate.account) if candidate.account else None
        try:
            with self.db.atomic():
                # The key claim, the transaction and the outcome commit together.
                if not self.db.claim_import_key(job.owner_id, key, job.id, row_number):
                    self._record(job.id, row_number, key, raw, RowStatus.DUPLICATE, error=DUPLICATE_MESSAGE)
                    return

                txn = self.transaction_service.create_transaction(
                    owner_id=job.owner_id,
                    amount=candidate.amount,
                    type=candidate.type,
                    account_id=account.id if account is not None else None,
                    category_id=candidate.category,
                    occurred_at=candidate.occurred_at,
                    description=candidate.description,
                    mode=PaymentMode.CASH,
                    reference=candidate.reference,
                    notes=f"Imported from {job.filename}",
                )
                self.db.record_import_row(
                    job_id=job.id,
                    row_number=row_number,
                    idempotency_key=key,
                    raw_data=raw,
                    status=RowStatus.PROCESSED,
                    mapped_data=candidate.to_payload(),
                    transaction_id=txn.id,
                )
        except StorageError:
            raise
        except DomainError as e:
            self._record_failure(job, row_number, key, raw, str(e))

    def _record_failure(
        self, job: ImportJobEntity, row_number: int, key: str, raw: dict[str, str], error: str
    ) -> None:
        """Record a failed row, or a duplicate if its key was already seen.

        Failed rows claim their key as well, so re-uploading the same bad row
        reports it as a duplicate.
        """
        with self.db.atomic():
            claimed = self.db.claim_import_key(job.owner_id, key, job.id, row_number)
            if claimed:
                self._record(job.id, row_number, key, raw, RowStatus.FAILED, error=error)
            else:
                self._record(job.id, row_number, key, raw, RowStatus.DUPLICATE, error=DUPLICATE_MESSAGE)

        if claimed:
            logger.warning(
                "Import row failed",
                extra={"job_id": job.id, "row_number": row_number, "error": error, "component": "ImportService"},
            )

    def _record(
        self,
        job_id: str,
        row_number: int,
        key: str,
        raw: dict[str, str],
        status: RowStatus,
        error: Optional[str] = None,
    ) -> None:
        self.db.record_import_row(
            job_id=job_id,
            row_number=row_number,
            idempotency_key=key,
            raw_data=raw,
            status=status,
            error_message=error,
        )

    def _fail_job(self, job_id: str, error: str) -> None:
        counts = self.db.count_import_rows(job_id)
        self.db.transition_import_job(
            job_id,
            (ImportStatus.PROCESSING.value,),
            ImportStatus.FAILED,
            error_log=error,
            completed_at=utc_now(),
            processed_rows=counts.processed,
            successful_rows=counts.succeeded,
            failed_rows=counts.failed,
            duplicate_rows=counts.duplicates,
        )
