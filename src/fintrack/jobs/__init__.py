"""Background job execution for fintrack."""

from fintrack.jobs.runner import ImportRunner

__all__ = ["ImportRunner"]
