"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the state on local disk today and move it elsewhere later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The state is three independent keyed blobs (categories, transactions,
savings goal), each rewritten in full when it changes. The interface is
intentionally that small - we're not building a database.
"""

from abc import ABC, abstractmethod
from typing import Optional

from dzbudget.models.audit import AuditEvent


class StateStorageInterface(ABC):
    """
    Abstract interface for keyed state blobs.

    A blob is JSON text. Implementations store and return it verbatim;
    parsing and versioning are the store's job.
    """

    @abstractmethod
    def read_blob(self, key: str) -> Optional[str]:
        """
        Read the blob stored under `key`.

        Returns:
            The stored text, or None if nothing was ever written

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write_blob(self, key: str, content: str) -> None:
        """
        Replace the blob stored under `key`.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete_blob(self, key: str) -> bool:
        """
        Remove a blob (used by "reset to defaults").

        Returns:
            True if something was deleted
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[dict]:
        """
        Get the most recent audit events.

        Returns:
            List of event dicts (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """A persisted blob exists but cannot be understood."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Persisted state '{key}' is unreadable: {reason}")
