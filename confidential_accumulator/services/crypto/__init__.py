"""
Crypto Services Package

Paillier-backed homomorphic engine, input proofs, key material
and grant-checked decryption.
"""

from confidential_accumulator.services.crypto.interface import (
    HomomorphicEngine,
    ProofVerifier,
)
from confidential_accumulator.services.crypto.keyring import PaillierKeyring
from confidential_accumulator.services.crypto.paillier_engine import PaillierEngine
from confidential_accumulator.services.crypto.proofs import (
    PaillierProofVerifier,
    encrypt_delta,
)
from confidential_accumulator.services.crypto.decryption import DecryptionGateway

__all__ = [
    # Interfaces
    "HomomorphicEngine",
    "ProofVerifier",
    # Paillier implementation
    "DecryptionGateway",
    "PaillierEngine",
    "PaillierKeyring",
    "PaillierProofVerifier",
    "encrypt_delta",
]
