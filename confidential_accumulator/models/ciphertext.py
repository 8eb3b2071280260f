"""
Core Data Models for the Confidential Accumulator

These models define the strict schemas for data flowing through the system.
They are designed to:
1. Never carry cleartext values
2. Be immutable where the domain says so (handles, deltas, grants)
3. Be serializable for storage and logging

DESIGN DECISION: A CiphertextHandle is a reference, not a ciphertext.
The ciphertext itself lives in the homomorphic engine's registry.
Handles are minted fresh by every operation and never mutated.
"""

import re
import secrets
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# A principal is an opaque identity. We only ever use it as a map key.
Principal = str

NULL_PRINCIPAL: Principal = "0x" + "0" * 40

UINT32_MODULUS = 2 ** 32

_HANDLE_ID_PATTERN = re.compile(r"^[0-9a-f]{64}$")
_DECIMAL_PATTERN = re.compile(r"^[0-9]+$")


def is_null_principal(principal: Optional[Principal]) -> bool:
    """True for None, the empty string and the all-zero address."""
    if principal is None:
        return True
    if not isinstance(principal, str):
        return False
    value = principal.strip()
    if not value:
        return True
    return value.lower() == NULL_PRINCIPAL


def new_handle_id() -> str:
    """Random 32-byte handle identifier, lowercase hex."""
    return secrets.token_hex(32)


# =============================================================================
# HANDLES AND INPUTS
# =============================================================================

class CiphertextHandle(BaseModel):
    """
    Opaque reference to an encrypted uint32 held by the homomorphic engine.

    Not cleartext-inspectable. Two handles are equal iff they reference
    the same ciphertext.
    """
    model_config = ConfigDict(frozen=True)

    handle_id: str = Field(
        default_factory=new_handle_id,
        description="64 hex chars identifying the ciphertext in the engine"
    )
    protocol_id: str = Field(
        ...,
        min_length=1,
        description="Deployment that minted this handle"
    )

    @field_validator('handle_id')
    @classmethod
    def validate_handle_id(cls, v: str) -> str:
        v = v.lower()
        if not _HANDLE_ID_PATTERN.match(v):
            raise ValueError("handle_id must be 64 hex characters")
        return v

    def short(self) -> str:
        """Abbreviated id for log lines."""
        return self.handle_id[:12]


class DeltaProof(BaseModel):
    """
    Non-interactive proof of knowledge of the plaintext behind a ciphertext.

    Bound to the submitting principal and to the accumulator instance
    through the Fiat-Shamir challenge. Integers are carried as decimal
    strings so the proof survives JSON transport unchanged.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    commitment: str = Field(..., description="a = g^x * s^n mod n^2")
    response_message: str = Field(..., description="z = x + e*m mod n")
    response_randomness: str = Field(..., description="w = s * r^e mod n")

    @field_validator('commitment', 'response_message', 'response_randomness')
    @classmethod
    def validate_decimal(cls, v: str) -> str:
        if not _DECIMAL_PATTERN.match(v):
            raise ValueError("proof values must be non-negative decimal integers")
        return v


class EncryptedDelta(BaseModel):
    """
    Caller-supplied encrypted 32-bit delta plus evidence of well-formedness.

    Transient: consumed once per operation, never stored.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    ciphertext: str = Field(
        ...,
        description="External encoding: Paillier ciphertext as a decimal integer"
    )
    proof: DeltaProof

    @field_validator('ciphertext')
    @classmethod
    def validate_ciphertext(cls, v: str) -> str:
        if not _DECIMAL_PATTERN.match(v):
            raise ValueError("ciphertext must be a non-negative decimal integer")
        return v


# =============================================================================
# STORE AND ACCESS RECORDS
# =============================================================================

class AccumulatorEntry(BaseModel):
    """
    The (principal, handle) pair held by the store.

    At most one entry per principal. Replaced wholesale on every write.
    """

    principal: Principal = Field(..., min_length=1)
    handle: CiphertextHandle
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = Field(
        default=1,
        ge=1,
        description="Number of writes applied to this slot"
    )

    def advance(self, handle: CiphertextHandle) -> "AccumulatorEntry":
        """Return the successor entry referencing `handle`."""
        return AccumulatorEntry(
            principal=self.principal,
            handle=handle,
            created_at=self.created_at,
            updated_at=datetime.utcnow(),
            version=self.version + 1,
        )


class AccessGrant(BaseModel):
    """Permission for `grantee` to request decryption of a handle."""
    model_config = ConfigDict(frozen=True)

    handle_id: str
    grantee: Principal
