"""Services package."""

from confidential_accumulator.services.storage import (
    AccumulatorStoreInterface,
    AuditStorageInterface,
    InMemoryAccumulatorStore,
    InMemoryAuditStorage,
    StorageError,
)
from confidential_accumulator.services.access import (
    AccessControlLedger,
    InMemoryAccessControlLedger,
)
from confidential_accumulator.services.crypto import (
    DecryptionGateway,
    HomomorphicEngine,
    PaillierEngine,
    PaillierKeyring,
    PaillierProofVerifier,
    ProofVerifier,
    encrypt_delta,
)

__all__ = [
    # Storage services
    "AccumulatorStoreInterface",
    "AuditStorageInterface",
    "InMemoryAccumulatorStore",
    "InMemoryAuditStorage",
    "StorageError",
    # Access control
    "AccessControlLedger",
    "InMemoryAccessControlLedger",
    # Crypto services
    "DecryptionGateway",
    "HomomorphicEngine",
    "PaillierEngine",
    "PaillierKeyring",
    "PaillierProofVerifier",
    "ProofVerifier",
    "encrypt_delta",
]
