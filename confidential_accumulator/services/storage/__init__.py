"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements an in-memory backend, but designed to be swappable.
"""

from confidential_accumulator.services.storage.interface import (
    AccumulatorStoreInterface,
    AuditStorageInterface,
    StorageError,
)
from confidential_accumulator.services.storage.memory import (
    InMemoryAccumulatorStore,
    InMemoryAuditStorage,
)

__all__ = [
    # Interfaces
    "AccumulatorStoreInterface",
    "AuditStorageInterface",
    # Exceptions
    "StorageError",
    # In-memory implementation
    "InMemoryAccumulatorStore",
    "InMemoryAuditStorage",
]
