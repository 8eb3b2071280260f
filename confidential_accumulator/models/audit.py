"""
Audit Models for the Confidential Accumulator

Every state change and every rejected operation is recorded.
This provides:
1. Traceability of which principal changed which slot, and when
2. Debugging information when a collaborator fails
3. A record of consistency hazards that need operator attention

DESIGN DECISION: Audit logs are append-only and carry ENCRYPTED handles only.
A cleartext amount never appears in an audit event.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from confidential_accumulator.errors import InvalidPrincipal
from confidential_accumulator.models.ciphertext import CiphertextHandle, Principal


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Committed operations
    INCREMENT = "Increment"
    DECREMENT = "Decrement"

    # Rejections (caller errors)
    INVALID_PRINCIPAL = "invalid_principal"
    INVALID_PROOF = "invalid_proof"

    # Collaborator problems
    BACKEND_FAILURE = "backend_failure"
    CONSISTENCY_HAZARD = "consistency_hazard"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - whose slot, which ciphertext
    principal: Optional[Principal] = Field(
        default=None,
        description="Principal the operation was performed for"
    )
    handle: Optional[CiphertextHandle] = Field(
        default=None,
        description="Encrypted handle the event refers to (never cleartext)"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one operation"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def name(self) -> str:
        return self.event_type.value

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "principal": self.principal,
            "handle_id": self.handle.handle_id if self.handle else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_row(self) -> list:
        """
        Flatten to a row for tabular export.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, principal, handle_id,
         correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.principal or "",
            self.handle.handle_id if self.handle else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.increment(principal, delta, correlation_id)
        event = AuditEventBuilder.operation_rejected(principal, "increment", error, correlation_id)
    """

    @staticmethod
    def increment(
        principal: Principal,
        delta: CiphertextHandle,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCREMENT,
            principal=principal,
            handle=delta,
            correlation_id=correlation_id,
            description="Encrypted increment applied",
        )

    @staticmethod
    def decrement(
        principal: Principal,
        delta: CiphertextHandle,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DECREMENT,
            principal=principal,
            handle=delta,
            correlation_id=correlation_id,
            description="Encrypted decrement applied",
        )

    @staticmethod
    def operation_rejected(
        principal: Optional[Principal],
        operation: str,
        error: Exception,
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = (
            AuditEventType.INVALID_PRINCIPAL
            if isinstance(error, InvalidPrincipal)
            else AuditEventType.INVALID_PROOF
        )
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING,
            principal=principal or None,
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} rejected: {event_type.value}",
            details={
                "operation": operation,
            },
            error_code=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def backend_failure(
        principal: Principal,
        operation: str,
        stage: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_FAILURE,
            severity=AuditSeverity.ERROR,
            principal=principal,
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} rolled back after {stage} failure",
            details={
                "operation": operation,
                "stage": stage,
            },
            error_code="BackendFailure",
            error_message=error_message,
        )

    @staticmethod
    def consistency_hazard(
        principal: Principal,
        handle: CiphertextHandle,
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONSISTENCY_HAZARD,
            severity=AuditSeverity.CRITICAL,
            principal=principal,
            handle=handle,
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} advanced state without guaranteed grants",
            details={
                "operation": operation,
            },
            error_code="ConsistencyHazard",
            error_message=error_message,
        )
