"""Services package."""

from dzbudget.services.storage import (
    AuditStorageInterface,
    CorruptStateError,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StateStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "CorruptStateError",
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "JsonLinesAuditStorage",
    "StateStorageInterface",
    "StorageError",
]
