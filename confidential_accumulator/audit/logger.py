"""
Audit Logger

DESIGN DECISION: Every committed change and every rejected operation is logged.
This provides:
1. Traceability per principal
2. Debugging capability when a collaborator fails
3. Visibility of consistency hazards

The audit logger:
- Is async so it composes with the service
- Never raises: a failing audit backend cannot fail a transaction
- Supports correlation IDs to trace one operation
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from confidential_accumulator.models.audit import AuditEvent, AuditEventBuilder
from confidential_accumulator.models.ciphertext import CiphertextHandle, Principal
from confidential_accumulator.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit sink.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def emit(
        self,
        event_name: str,
        principal: Principal,
        handle: CiphertextHandle,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Emit an Increment/Decrement event by name."""
        correlation_id = correlation_id or create_correlation_id()
        if event_name == "Decrement":
            event = AuditEventBuilder.decrement(principal, handle, correlation_id)
        elif event_name == "Increment":
            event = AuditEventBuilder.increment(principal, handle, correlation_id)
        else:
            raise ValueError(f"Unknown audit event name: {event_name}")
        await self.log(event)

    async def log_operation_rejected(
        self,
        principal: Optional[Principal],
        operation: str,
        error: Exception,
        correlation_id: UUID,
    ) -> None:
        """Log a caller error (null principal, bad proof)."""
        event = AuditEventBuilder.operation_rejected(
            principal=principal,
            operation=operation,
            error=error,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_backend_failure(
        self,
        principal: Principal,
        operation: str,
        stage: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a collaborator failure that was rolled back."""
        event = AuditEventBuilder.backend_failure(
            principal=principal,
            operation=operation,
            stage=stage,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_consistency_hazard(
        self,
        principal: Principal,
        handle: CiphertextHandle,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a write that committed without its access grants."""
        event = AuditEventBuilder.consistency_hazard(
            principal=principal,
            handle=handle,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of an operation and pass it through.
    """
    return uuid4()
