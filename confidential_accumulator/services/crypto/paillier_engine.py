"""
Paillier Homomorphic Engine

Implements HomomorphicEngine over python-paillier (`phe`).

DESIGN DECISION: Ciphertexts stay inside the engine. Callers only ever
hold CiphertextHandles; the engine keeps the handle -> EncryptedNumber
registry. All numbers use exponent 0, i.e. plain integers.

Paillier addition is modulo n, which is far wider than 32 bits. The uint32
view is taken at decryption time (value mod 2^32). Sums and differences
therefore wrap exactly like 32-bit unsigned integers, e.g. 0 - 5 decrypts
to 4294967291.

Handles minted by a rolled-back operation are discarded. Every other
handle stays registered so superseded totals remain decryptable.
"""

from phe import paillier

import structlog

from confidential_accumulator.errors import BackendFailure
from confidential_accumulator.models.ciphertext import CiphertextHandle
from confidential_accumulator.services.crypto.interface import HomomorphicEngine


logger = structlog.get_logger(__name__)

# Trivial encryption of 0 (g^0 * 1^n). Deterministic, so it can be canonical.
_TRIVIAL_ZERO = 1


class PaillierEngine(HomomorphicEngine):
    """
    Homomorphic add/sub on Paillier ciphertexts.

    The engine does not need the private key.
    """

    def __init__(
        self,
        public_key: paillier.PaillierPublicKey,
        protocol_id: str,
    ):
        self._public_key = public_key
        self._protocol_id = protocol_id
        self._ciphertexts: dict[str, paillier.EncryptedNumber] = {}
        self._zero = self._register(
            paillier.EncryptedNumber(public_key, _TRIVIAL_ZERO, 0)
        )

    @property
    def public_key(self) -> paillier.PaillierPublicKey:
        return self._public_key

    @property
    def protocol_id(self) -> str:
        return self._protocol_id

    def zero(self) -> CiphertextHandle:
        return self._zero

    def add(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        left, right = self._lookup(a), self._lookup(b)
        try:
            result = left + right
        except (ValueError, TypeError) as e:
            raise BackendFailure(f"Homomorphic add failed: {e}") from e
        return self._register(result)

    def sub(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        left, right = self._lookup(a), self._lookup(b)
        try:
            result = left - right
        except (ValueError, TypeError) as e:
            raise BackendFailure(f"Homomorphic sub failed: {e}") from e
        return self._register(result)

    def register_ciphertext(self, ciphertext: int) -> CiphertextHandle:
        """Admit a raw ciphertext integer. Only the proof verifier calls this."""
        return self._register(
            paillier.EncryptedNumber(self._public_key, ciphertext, 0)
        )

    def encrypted_number(self, handle: CiphertextHandle) -> paillier.EncryptedNumber:
        """Resolve a handle for decryption."""
        return self._lookup(handle)

    def knows(self, handle: CiphertextHandle) -> bool:
        return (
            handle.protocol_id == self._protocol_id
            and handle.handle_id in self._ciphertexts
        )

    def discard(self, handle: CiphertextHandle) -> None:
        if handle == self._zero or handle.protocol_id != self._protocol_id:
            return
        self._ciphertexts.pop(handle.handle_id, None)

    def __len__(self) -> int:
        return len(self._ciphertexts)

    def _register(self, number: paillier.EncryptedNumber) -> CiphertextHandle:
        handle = CiphertextHandle(protocol_id=self._protocol_id)
        self._ciphertexts[handle.handle_id] = number
        return handle

    def _lookup(self, handle: CiphertextHandle) -> paillier.EncryptedNumber:
        if handle.protocol_id != self._protocol_id:
            raise BackendFailure(
                f"Handle {handle.short()} belongs to protocol {handle.protocol_id!r}, "
                f"engine runs {self._protocol_id!r}"
            )
        try:
            return self._ciphertexts[handle.handle_id]
        except KeyError:
            raise BackendFailure(f"Unknown ciphertext handle {handle.short()}")
