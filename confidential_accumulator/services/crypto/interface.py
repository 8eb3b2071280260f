"""
Abstract Crypto Interfaces

DESIGN DECISION: Ingest is a two-stage pipeline with an explicit trust boundary.
1. ProofVerifier: external encoding + proof -> validated CiphertextHandle
2. HomomorphicEngine: handles in -> new handle out

The verifier can be mocked independently of the arithmetic, and the
accumulator service never touches raw ciphertexts.
"""

from abc import ABC, abstractmethod

from confidential_accumulator.models.ciphertext import (
    CiphertextHandle,
    EncryptedDelta,
    Principal,
)


class HomomorphicEngine(ABC):
    """
    Arithmetic over encrypted uint32 values.

    Pure with respect to the accumulator: every call mints a new handle
    and never mutates an existing one.
    """

    @abstractmethod
    def zero(self) -> CiphertextHandle:
        """The canonical encrypted zero. Same handle on every call."""
        pass

    @abstractmethod
    def add(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        """
        Encrypted a + b.

        Raises:
            BackendFailure: If either handle is unknown or the backend fails
        """
        pass

    @abstractmethod
    def sub(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        """
        Encrypted a - b, wrapping modulo 2^32 when decrypted.

        Raises:
            BackendFailure: If either handle is unknown or the backend fails
        """
        pass

    @abstractmethod
    def discard(self, handle: CiphertextHandle) -> None:
        """
        Forget a handle minted by an operation that was rolled back.

        Unknown handles are ignored. The canonical zero is never discarded.
        """
        pass


class ProofVerifier(ABC):
    """Admits caller-supplied encrypted inputs into the engine."""

    @abstractmethod
    def verify(
        self,
        delta: EncryptedDelta,
        bound_caller: Principal,
        bound_context: str,
    ) -> CiphertextHandle:
        """
        Verify a delta and register its ciphertext.

        The proof must be bound to both the submitting principal and the
        accumulator instance, so it cannot be replayed by another caller
        or against another deployment.

        Returns:
            A handle usable with the HomomorphicEngine

        Raises:
            InvalidProof: If the ciphertext or proof is malformed or does not verify
        """
        pass
