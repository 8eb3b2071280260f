"""
Decryption Gateway

The off-chain party that turns a handle back into a uint32 - but only for
requesters holding an access grant on that exact handle.
"""

import structlog

from confidential_accumulator.errors import AccessDenied, KeyLoadError
from confidential_accumulator.models.ciphertext import (
    UINT32_MODULUS,
    CiphertextHandle,
    Principal,
)
from confidential_accumulator.services.access import AccessControlLedger
from confidential_accumulator.services.crypto.keyring import PaillierKeyring
from confidential_accumulator.services.crypto.paillier_engine import PaillierEngine


logger = structlog.get_logger(__name__)


class DecryptionGateway:
    """Grant-checked decryption of accumulator handles."""

    def __init__(
        self,
        engine: PaillierEngine,
        keyring: PaillierKeyring,
        ledger: AccessControlLedger,
    ):
        if not keyring.can_decrypt:
            raise KeyLoadError("Decryption gateway needs a keyring with a private key")
        self._engine = engine
        self._keyring = keyring
        self._ledger = ledger

    async def decrypt(self, handle: CiphertextHandle, requester: Principal) -> int:
        """
        Decrypt `handle` for `requester`.

        Returns:
            The cleartext as a uint32 (wrapped modulo 2^32)

        Raises:
            AccessDenied: If requester holds no grant on the handle
            BackendFailure: If the handle is unknown to the engine
        """
        if not await self._ledger.is_allowed(handle, requester):
            logger.warning(
                "decryption_denied",
                handle_id=handle.short(),
                requester=requester,
            )
            raise AccessDenied(
                f"{requester} holds no access grant on handle {handle.short()}"
            )

        number = self._engine.encrypted_number(handle)
        private_key = self._keyring.private_key
        # raw_decrypt: decode() overflows on plaintexts in (n/3, 2n/3)
        value = private_key.raw_decrypt(number.ciphertext(be_secure=False))
        n = private_key.public_key.n
        if value > n // 2:
            value -= n
        return value % UINT32_MODULUS
