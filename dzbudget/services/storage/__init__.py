"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements local JSON files as the backend, but designed to be swappable.
"""

from dzbudget.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)
from dzbudget.services.storage.local_files import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileStateStorage,
    JsonLinesAuditStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "StateStorageInterface",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "JsonLinesAuditStorage",
]
