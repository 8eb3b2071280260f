"""
In-Memory Storage Implementation

DESIGN DECISION: The store is a plain dict guarded by the service's
serialization. There is no locking here; the accumulator service runs
every mutating operation under its own lock.

TRADEOFFS:
- Nothing survives a restart
- restore() is trivially exact, so rollback is always available
"""

from collections import deque
from typing import Callable, Optional
from uuid import UUID

import structlog

from confidential_accumulator.models.audit import AuditEvent
from confidential_accumulator.models.ciphertext import (
    AccumulatorEntry,
    CiphertextHandle,
    Principal,
)
from confidential_accumulator.services.storage.interface import (
    AccumulatorStoreInterface,
    AuditStorageInterface,
)


logger = structlog.get_logger(__name__)


class InMemoryAccumulatorStore(AccumulatorStoreInterface):
    """
    Dict-backed accumulator store.

    The zero provider is the homomorphic engine's zero(), so an absent
    slot and an explicit zero handle are the same operand.
    """

    def __init__(self, zero_provider: Callable[[], CiphertextHandle]):
        self._zero_provider = zero_provider
        self._entries: dict[Principal, AccumulatorEntry] = {}

    async def read(
        self,
        principal: Principal,
        materialize: bool = False,
    ) -> CiphertextHandle:
        entry = self._entries.get(principal)
        if entry is not None:
            return entry.handle

        zero = self._zero_provider()
        if materialize:
            self._entries[principal] = AccumulatorEntry(principal=principal, handle=zero)
            logger.debug(
                "zero_handle_materialized",
                principal=principal,
                handle_id=zero.short(),
            )
        return zero

    async def write(
        self,
        principal: Principal,
        handle: CiphertextHandle,
    ) -> AccumulatorEntry:
        current = self._entries.get(principal)
        if current is None:
            entry = AccumulatorEntry(principal=principal, handle=handle)
        else:
            entry = current.advance(handle)
        self._entries[principal] = entry
        return entry

    async def get_entry(self, principal: Principal) -> Optional[AccumulatorEntry]:
        return self._entries.get(principal)

    async def restore(
        self,
        principal: Principal,
        entry: Optional[AccumulatorEntry],
    ) -> None:
        if entry is None:
            self._entries.pop(principal, None)
        else:
            self._entries[principal] = entry

    async def principals(self) -> list[Principal]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded append-only audit log. Oldest events drop off at max_events."""

    def __init__(self, max_events: int = 10000):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_principal(
        self,
        principal: Principal,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.principal == principal]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = list(self._events)
        events.reverse()
        return events[:limit]
