"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the in-memory store for a durable one later
2. Keep the service decoupled from storage implementation
3. Inject failing stores in tests to exercise rollback

The accumulator store is a map principal -> current handle.
Each slot has two states, absent and present(handle). A read of an absent
slot yields the engine's canonical zero handle.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from confidential_accumulator.errors import BackendFailure
from confidential_accumulator.models.audit import AuditEvent
from confidential_accumulator.models.ciphertext import (
    AccumulatorEntry,
    CiphertextHandle,
    Principal,
)


class AccumulatorStoreInterface(ABC):
    """
    Abstract interface for the principal -> handle mapping.

    No handle provenance checks happen here. That is the service's job.
    """

    @property
    def supports_rollback(self) -> bool:
        """Whether restore() can undo a write within the current process."""
        return True

    @abstractmethod
    async def read(
        self,
        principal: Principal,
        materialize: bool = False,
    ) -> CiphertextHandle:
        """
        Return the principal's current handle, or the canonical zero handle.

        Args:
            principal: The slot key
            materialize: Persist the zero handle for an absent slot.
                         This is a mutation and must only be requested
                         inside a transaction.

        Returns:
            The current handle (never None)
        """
        pass

    @abstractmethod
    async def write(
        self,
        principal: Principal,
        handle: CiphertextHandle,
    ) -> AccumulatorEntry:
        """
        Replace the principal's entry atomically.

        Returns:
            The new entry

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_entry(self, principal: Principal) -> Optional[AccumulatorEntry]:
        """Return the raw entry, or None for an absent slot."""
        pass

    @abstractmethod
    async def restore(
        self,
        principal: Principal,
        entry: Optional[AccumulatorEntry],
    ) -> None:
        """
        Put a slot back to a previously observed entry.

        Only used to roll back a failed transaction. Restoring None
        returns the slot to absent.

        Raises:
            StorageError: If the slot cannot be restored
        """
        pass

    @abstractmethod
    async def principals(self) -> list[Principal]:
        """List principals with a present slot."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events for one operation, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_principal(
        self,
        principal: Principal,
    ) -> list[AuditEvent]:
        """Events for one principal, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(BackendFailure):
    """Base exception for storage operations."""
    pass
