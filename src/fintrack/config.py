"""Runtime settings for fintrack."""

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional

DEFAULT_OWNER = "local"
DEFAULT_PREVIEW_ROWS = 5
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_IMPORT_WORKERS = 4


@dataclass(frozen=True)
class Settings:
    """Settings shared by the CLI and services.

    Attributes:
        db_path: SQLite database file, or None for the default location.
        owner_id: Owner that CLI commands act on behalf of.
        preview_rows: Number of uploaded rows kept as the mapping preview.
        max_upload_bytes: Largest CSV file accepted for upload.
        import_workers: Threads available to background import jobs.
        log_level: Root log level name.
    """

    db_path: Optional[str] = None
    owner_id: str = DEFAULT_OWNER
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    import_workers: int = DEFAULT_IMPORT_WORKERS
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FINTRACK_* environment variables."""
        return cls(
            db_path=os.getenv("FINTRACK_DB_PATH") or None,
            owner_id=os.getenv("FINTRACK_OWNER", DEFAULT_OWNER).strip() or DEFAULT_OWNER,
            preview_rows=cls._int_env("FINTRACK_PREVIEW_ROWS", DEFAULT_PREVIEW_ROWS),
            max_upload_bytes=cls._int_env("FINTRACK_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            import_workers=cls._int_env("FINTRACK_IMPORT_WORKERS", DEFAULT_IMPORT_WORKERS),
            log_level=os.getenv("FINTRACK_LOG_LEVEL", "WARNING").strip().upper(),
        )

    @staticmethod
    def _int_env(name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as e:
            raise ValueError(f"{name} must be an integer, got '{raw}'") from e
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")
        return value


def default_db_path() -> Path:
    """Return ~/.fintrack/fintrack.db, creating the directory."""
    db_dir = Path.home() / ".fintrack"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "fintrack.db"
