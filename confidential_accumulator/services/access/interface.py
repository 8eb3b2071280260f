"""
Abstract Access Control Ledger

Records who may request decryption of which ciphertext handle.
The accumulator never stores grants itself; it only issues them.

Grants are idempotent: granting twice is a no-op, not an error.
"""

from abc import ABC, abstractmethod

from confidential_accumulator.models.ciphertext import CiphertextHandle, Principal


class AccessControlLedger(ABC):
    """Grant/revoke decryption rights over ciphertext handles."""

    @property
    @abstractmethod
    def service_address(self) -> Principal:
        """Identity that grant_self() grants to."""
        pass

    @abstractmethod
    async def grant_self(self, handle: CiphertextHandle) -> None:
        """Allow the accumulator service itself to keep operating on `handle`."""
        pass

    @abstractmethod
    async def grant_to(self, handle: CiphertextHandle, principal: Principal) -> None:
        """Allow `principal` to decrypt `handle`."""
        pass

    @abstractmethod
    async def revoke(self, handle: CiphertextHandle, principal: Principal) -> None:
        """Withdraw a grant. Revoking a missing grant is a no-op."""
        pass

    @abstractmethod
    async def is_allowed(self, handle: CiphertextHandle, party: Principal) -> bool:
        """Does `party` hold a grant on `handle`?"""
        pass

    @abstractmethod
    async def grants_for(self, handle: CiphertextHandle) -> set[Principal]:
        """All grantees of `handle`."""
        pass
