"""
Shared fixtures.

No test generates a full-size key: one 1024-bit keypair is shared by
the whole session.
"""

import asyncio
from dataclasses import dataclass

import pytest

from confidential_accumulator.accumulator import ConfidentialAccumulator
from confidential_accumulator.audit import AuditLogger
from confidential_accumulator.config import AccumulatorSettings
from confidential_accumulator.services import (
    DecryptionGateway,
    InMemoryAccessControlLedger,
    InMemoryAccumulatorStore,
    InMemoryAuditStorage,
    PaillierEngine,
    PaillierKeyring,
    PaillierProofVerifier,
    encrypt_delta,
)


SERVICE_ADDRESS = "0x00000000000000000000000000000000000ac0de"
ALICE = "0xa11ce00000000000000000000000000000000001"
BOB = "0xb0b0000000000000000000000000000000000002"


def run(coro):
    """Drive a coroutine from a synchronous test."""
    return asyncio.run(coro)


@dataclass
class Harness:
    settings: AccumulatorSettings
    keyring: PaillierKeyring
    engine: PaillierEngine
    verifier: PaillierProofVerifier
    store: InMemoryAccumulatorStore
    ledger: InMemoryAccessControlLedger
    audit_storage: InMemoryAuditStorage
    accumulator: ConfidentialAccumulator
    gateway: DecryptionGateway

    def delta(self, value: int, caller: str = ALICE):
        return encrypt_delta(self.keyring.public_key, value, caller, SERVICE_ADDRESS)

    def total(self, principal: str) -> int:
        """Decrypt a principal's current total as that principal."""
        handle = run(self.accumulator.read(principal))
        return run(self.gateway.decrypt(handle, principal))


def build_harness(
    keyring: PaillierKeyring,
    store_cls=InMemoryAccumulatorStore,
    ledger=None,
) -> Harness:
    settings = AccumulatorSettings(
        protocol_id="test-protocol",
        service_address=SERVICE_ADDRESS,
    )
    engine = PaillierEngine(keyring.public_key, settings.protocol_id)
    verifier = PaillierProofVerifier(engine)
    store = store_cls(engine.zero)
    ledger = ledger if ledger is not None else InMemoryAccessControlLedger(SERVICE_ADDRESS)
    audit_storage = InMemoryAuditStorage()
    accumulator = ConfidentialAccumulator(
        store=store,
        engine=engine,
        verifier=verifier,
        ledger=ledger,
        audit_logger=AuditLogger(audit_storage),
        settings=settings,
    )
    gateway = DecryptionGateway(engine, keyring, ledger)
    return Harness(
        settings=settings,
        keyring=keyring,
        engine=engine,
        verifier=verifier,
        store=store,
        ledger=ledger,
        audit_storage=audit_storage,
        accumulator=accumulator,
        gateway=gateway,
    )


@pytest.fixture(scope="session")
def keyring() -> PaillierKeyring:
    return PaillierKeyring.generate(key_bits=1024)


@pytest.fixture
def harness(keyring) -> Harness:
    return build_harness(keyring)
