"""Notifiers: fire-and-forget delivery of owner events."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from fintrack.database.base import Database

logger = logging.getLogger(__name__)

IMPORT_COMPLETE = "import_complete"

MESSAGE_TEMPLATES = {
    IMPORT_COMPLETE: (
        "Import Completed",
        "CSV import completed: {succeeded} successful, {failed} failed",
    ),
}


class Notifier(ABC):
    """Delivers an event to an owner."""

    @abstractmethod
    def notify(self, owner_id: str, kind: str, payload: dict[str, Any]) -> None:
        """Deliver an event. Implementations may raise; callers contain failures."""
        pass


class LogNotifier(Notifier):
    """Writes events to the log only."""

    def notify(self, owner_id: str, kind: str, payload: dict[str, Any]) -> None:
        logger.info(
            "Notification emitted",
            extra={"owner_id": owner_id, "kind": kind, "payload": payload, "component": "LogNotifier"},
        )


class DatabaseNotifier(Notifier):
    """Stores events in the notifications table for in-app display."""

    def __init__(self, db: Database):
        self.db = db

    def notify(self, owner_id: str, kind: str, payload: dict[str, Any]) -> None:
        title, template = MESSAGE_TEMPLATES.get(kind, (kind.replace("_", " ").title(), "{kind}"))
        message = template.format(kind=kind, **payload)
        self.db.create_notification(
            owner_id=owner_id, kind=kind, title=title, message=message, payload=payload
        )


def notify_quietly(notifier: Notifier, owner_id: str, kind: str, payload: dict[str, Any]) -> bool:
    """Deliver through notifier, logging and swallowing any failure.

    Returns:
        True if delivery succeeded
    """
    try:
        notifier.notify(owner_id, kind, payload)
    except Exception:
        logger.warning(
            "Notification delivery failed",
            exc_info=True,
            extra={
                "owner_id": owner_id,
                "kind": kind,
                "action": "notify_failed",
                "component": type(notifier).__name__,
            },
        )
        return False
    return True
