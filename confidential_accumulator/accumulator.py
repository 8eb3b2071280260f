"""
Confidential Accumulator Service

This module ties the collaborators together and defines the public
operations: increment, decrement, read, protocol_id.

DESIGN DECISION: The service enforces the boundaries:
- Nothing reaches the store without a verified proof
- Cleartext never passes through here - only handles
- Every mutating operation is all-or-nothing: the store write and both
  access grants commit together, or the slot is restored

Operations are serialized by one asyncio.Lock. Every operation in scope
touches a single principal, so a global lock gives per-principal
serializability without any lock ordering concerns.

UNDERFLOW: decrement performs no cleartext bounds check. The accumulator is
an encrypted uint32 and wraps modulo 2^32 (0 - 5 decrypts to 4294967291).
This is the contract of this version, not a placeholder: callers that need
negative exposure must interpret the wrapped value themselves.
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog

from confidential_accumulator.audit import AuditLogger, create_correlation_id
from confidential_accumulator.config import AccumulatorSettings, Settings, get_settings
from confidential_accumulator.errors import (
    AccumulatorError,
    BackendFailure,
    ConsistencyHazard,
    InvalidPrincipal,
    InvalidProof,
)
from confidential_accumulator.models.ciphertext import (
    AccumulatorEntry,
    CiphertextHandle,
    EncryptedDelta,
    Principal,
    is_null_principal,
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
)
from confidential_accumulator.services.storage import (
    AccumulatorStoreInterface,
    AuditStorageInterface,
    InMemoryAccumulatorStore,
    InMemoryAuditStorage,
    StorageError,
)


logger = structlog.get_logger(__name__)

INCREMENT = "increment"
DECREMENT = "decrement"

_EVENT_NAMES = {
    INCREMENT: "Increment",
    DECREMENT: "Decrement",
}


class ConfidentialAccumulator:
    """
    One encrypted running total per principal.

    Flow for increment/decrement:
    1. Reject a null caller
    2. Verify the encrypted delta, bound to caller and this service
    3. Stage the audit event (delivered only after commit)
    4. Read the current handle (materializing encrypted zero if absent)
    5. Homomorphic add/sub
    6. Write the new handle
    7. Grant the service and the caller access to the new handle
    """

    def __init__(
        self,
        store: AccumulatorStoreInterface,
        engine: HomomorphicEngine,
        verifier: ProofVerifier,
        ledger: AccessControlLedger,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AccumulatorSettings] = None,
    ):
        self._settings = settings or get_settings().accumulator
        if ledger.service_address != self._settings.service_address:
            raise ValueError(
                "Access ledger grants to a different service identity "
                f"({ledger.service_address}) than this accumulator "
                f"({self._settings.service_address})"
            )
        self._store = store
        self._engine = engine
        self._verifier = verifier
        self._ledger = ledger
        self._audit_logger = audit_logger
        self._lock = asyncio.Lock()

    @property
    def service_address(self) -> Principal:
        return self._settings.service_address

    def protocol_id(self) -> str:
        """Identifier of the deployment/backend. Stable for its lifetime."""
        return self._settings.protocol_id

    async def read(self, principal: Principal) -> CiphertextHandle:
        """
        Return the principal's current handle.

        Principals that never wrote get the canonical zero handle. Reading
        confers no decryption rights.
        """
        async with self._lock:
            try:
                return await self._store.read(principal)
            except AccumulatorError:
                raise
            except Exception as e:
                raise StorageError(f"Store read failed: {e}") from e

    async def increment(
        self,
        caller: Principal,
        delta: EncryptedDelta,
        correlation_id: Optional[UUID] = None,
    ) -> CiphertextHandle:
        """
        Add an encrypted delta to the caller's total.

        Returns:
            The caller's new handle, decryptable by the caller

        Raises:
            InvalidPrincipal: caller is the null identity
            InvalidProof: the delta failed verification
            BackendFailure: a collaborator failed; nothing changed
            ConsistencyHazard: the total advanced but grants are incomplete
        """
        return await self._apply(INCREMENT, caller, delta, correlation_id)

    async def decrement(
        self,
        caller: Principal,
        delta: EncryptedDelta,
        correlation_id: Optional[UUID] = None,
    ) -> CiphertextHandle:
        """
        Subtract an encrypted delta from the caller's total.

        No underflow check: the result wraps modulo 2^32.
        Raises the same errors as increment().
        """
        return await self._apply(DECREMENT, caller, delta, correlation_id)

    async def _apply(
        self,
        operation: str,
        caller: Principal,
        delta: EncryptedDelta,
        correlation_id: Optional[UUID],
    ) -> CiphertextHandle:
        correlation_id = correlation_id or create_correlation_id()
        log = logger.bind(
            operation=operation,
            principal=caller,
            correlation_id=str(correlation_id),
        )

        async with self._lock:
            # Steps 1-2: caller errors, nothing has been touched yet
            try:
                if is_null_principal(caller):
                    raise InvalidPrincipal(caller)
                delta_handle = self._verify(delta, caller)
            except (InvalidPrincipal, InvalidProof) as e:
                log.warning("operation_rejected", error=str(e))
                if self._audit_logger:
                    await self._audit_logger.log_operation_rejected(
                        principal=caller if isinstance(caller, str) else None,
                        operation=operation,
                        error=e,
                        correlation_id=correlation_id,
                    )
                raise

            # Step 3: staged, emitted after commit
            staged_event = (_EVENT_NAMES[operation], caller, delta_handle)

            try:
                prior = await self._store.get_entry(caller)
            except Exception as e:
                self._engine.discard(delta_handle)
                raise StorageError(f"Store lookup failed: {e}") from e

            stage = "read"
            materialized = False
            written = False
            granted: list[Principal] = []
            updated: Optional[CiphertextHandle] = None
            try:
                # Step 4
                current = await self._store.read(caller, materialize=True)
                materialized = prior is None

                # Step 5
                stage = operation
                if operation == INCREMENT:
                    updated = self._engine.add(current, delta_handle)
                else:
                    updated = self._engine.sub(current, delta_handle)

                # Step 6
                stage = "write"
                await self._store.write(caller, updated)
                written = True

                # Step 7
                stage = "grant"
                await self._ledger.grant_self(updated)
                granted.append(self.service_address)
                await self._ledger.grant_to(updated, caller)
                granted.append(caller)
            except Exception as e:
                failure = await self._abort(
                    operation=operation,
                    caller=caller,
                    prior=prior,
                    delta_handle=delta_handle,
                    updated=updated,
                    materialized=materialized,
                    written=written,
                    granted=granted,
                    stage=stage,
                    error=e,
                    correlation_id=correlation_id,
                )
                if failure is e:
                    raise
                raise failure from e

            log.info("operation_committed", handle_id=updated.short())

        if self._audit_logger:
            event_name, principal, handle = staged_event
            await self._audit_logger.emit(
                event_name, principal, handle, correlation_id=correlation_id
            )
        return updated

    def _verify(self, delta: EncryptedDelta, caller: Principal) -> CiphertextHandle:
        try:
            return self._verifier.verify(delta, caller, self.service_address)
        except AccumulatorError:
            raise
        except Exception as e:
            raise BackendFailure(f"Proof verifier failed: {e}") from e

    async def _abort(
        self,
        operation: str,
        caller: Principal,
        prior: Optional[AccumulatorEntry],
        delta_handle: CiphertextHandle,
        updated: Optional[CiphertextHandle],
        materialized: bool,
        written: bool,
        granted: list[Principal],
        stage: str,
        error: Exception,
        correlation_id: UUID,
    ) -> AccumulatorError:
        """
        Undo a partially applied operation and return the error to raise.

        Without a working restore, a slot materialized by this operation
        stays present holding the canonical zero. That is still reported
        as BackendFailure: read() returns the same zero handle for a
        present-zero slot as for an absent one, so the total is unchanged.
        Only a landed write that cannot be undone is a ConsistencyHazard.
        """
        log = logger.bind(
            operation=operation,
            principal=caller,
            stage=stage,
            correlation_id=str(correlation_id),
        )

        restored = False
        if self._store.supports_rollback:
            try:
                await self._store.restore(caller, prior)
                restored = True
            except Exception as restore_error:
                log.error("rollback_failed", error=str(restore_error))

        if restored and updated is not None:
            for grantee in granted:
                try:
                    await self._ledger.revoke(updated, grantee)
                except Exception as revoke_error:
                    # The handle is orphaned once the slot is restored
                    log.warning(
                        "grant_revoke_failed",
                        grantee=grantee,
                        error=str(revoke_error),
                    )

        self._engine.discard(delta_handle)
        if updated is not None and (restored or not written):
            self._engine.discard(updated)

        if written and not restored:
            message = (
                f"{operation} committed handle {updated.short()} for {caller} "
                f"but access grants failed: {error}"
            )
            log.error("consistency_hazard", handle_id=updated.short(), error=str(error))
            if self._audit_logger:
                await self._audit_logger.log_consistency_hazard(
                    principal=caller,
                    handle=updated,
                    operation=operation,
                    error_message=str(error),
                    correlation_id=correlation_id,
                )
            return ConsistencyHazard(caller, updated, message)

        if materialized and not restored:
            log.warning("zero_slot_left_materialized")
        log.error("operation_rolled_back", error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_backend_failure(
                principal=caller,
                operation=operation,
                stage=stage,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        if isinstance(error, BackendFailure):
            return error
        return BackendFailure(f"{operation} failed during {stage}: {error}")


def create_accumulator_service(
    keyring: Optional[PaillierKeyring] = None,
    settings: Optional[Settings] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[ConfidentialAccumulator, Optional[DecryptionGateway], PaillierKeyring]:
    """
    Factory function to wire the accumulator with in-memory collaborators.

    Args:
        keyring: Keypair to use. Loaded from the configured key file, or
                 generated, when omitted.
        settings: Root settings. Defaults to get_settings().
        audit_storage: Audit backend. An in-memory one is created when omitted.

    Returns:
        (accumulator, decryption_gateway, keyring). The gateway is None
        when the keyring has no private key.
    """
    settings = settings or get_settings()
    accumulator_settings = settings.accumulator

    if keyring is None:
        key_settings = settings.keys
        if key_settings.file:
            keyring = PaillierKeyring.load(key_settings.file)
        else:
            keyring = PaillierKeyring.generate(key_settings.bits)

    engine = PaillierEngine(keyring.public_key, accumulator_settings.protocol_id)
    verifier = PaillierProofVerifier(engine)
    store = InMemoryAccumulatorStore(engine.zero)
    ledger = InMemoryAccessControlLedger(accumulator_settings.service_address)
    audit_logger = AuditLogger(
        audit_storage or InMemoryAuditStorage(accumulator_settings.max_audit_events)
    )

    accumulator = ConfidentialAccumulator(
        store=store,
        engine=engine,
        verifier=verifier,
        ledger=ledger,
        audit_logger=audit_logger,
        settings=accumulator_settings,
    )
    gateway = DecryptionGateway(engine, keyring, ledger) if keyring.can_decrypt else None

    logger.info(
        "accumulator_created",
        protocol_id=accumulator_settings.protocol_id,
        service_address=accumulator_settings.service_address,
        can_decrypt=keyring.can_decrypt,
    )
    return accumulator, gateway, keyring
