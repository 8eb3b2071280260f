"""
Data Models Package

All Pydantic models used by the accumulator.
No model in this package ever holds a cleartext amount.
"""

from confidential_accumulator.models.ciphertext import (
    NULL_PRINCIPAL,
    UINT32_MODULUS,
    AccessGrant,
    AccumulatorEntry,
    CiphertextHandle,
    DeltaProof,
    EncryptedDelta,
    Principal,
    is_null_principal,
)
from confidential_accumulator.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ciphertext models
    "NULL_PRINCIPAL",
    "UINT32_MODULUS",
    "AccessGrant",
    "AccumulatorEntry",
    "CiphertextHandle",
    "DeltaProof",
    "EncryptedDelta",
    "Principal",
    "is_null_principal",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
