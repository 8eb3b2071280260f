"""In-memory access control ledger."""

import structlog

from confidential_accumulator.models.ciphertext import (
    AccessGrant,
    CiphertextHandle,
    Principal,
)
from confidential_accumulator.services.access.interface import AccessControlLedger


logger = structlog.get_logger(__name__)


class InMemoryAccessControlLedger(AccessControlLedger):
    """Set of AccessGrant records."""

    def __init__(self, service_address: Principal):
        self._service_address = service_address
        self._grants: set[AccessGrant] = set()

    @property
    def service_address(self) -> Principal:
        return self._service_address

    async def grant_self(self, handle: CiphertextHandle) -> None:
        await self.grant_to(handle, self._service_address)

    async def grant_to(self, handle: CiphertextHandle, principal: Principal) -> None:
        grant = AccessGrant(handle_id=handle.handle_id, grantee=principal)
        if grant not in self._grants:
            self._grants.add(grant)
            logger.debug("access_granted", handle_id=handle.short(), grantee=principal)

    async def revoke(self, handle: CiphertextHandle, principal: Principal) -> None:
        self._grants.discard(AccessGrant(handle_id=handle.handle_id, grantee=principal))

    async def is_allowed(self, handle: CiphertextHandle, party: Principal) -> bool:
        return AccessGrant(handle_id=handle.handle_id, grantee=party) in self._grants

    async def grants_for(self, handle: CiphertextHandle) -> set[Principal]:
        return {g.grantee for g in self._grants if g.handle_id == handle.handle_id}

    def __len__(self) -> int:
        return len(self._grants)
