"""
Error taxonomy for the Confidential Accumulator

DESIGN DECISION: Caller errors and backend errors are distinct types.
- InvalidPrincipal / InvalidProof: the caller did something wrong.
  Reported synchronously, zero state change.
- BackendFailure: a collaborator (engine, ledger, store) failed.
  Zero state change whenever rollback was possible.
- ConsistencyHazard: the accumulator advanced but the decryption grants
  could not be guaranteed. Never folded into BackendFailure.

There is no retry policy here. Retries belong to the caller.
"""

from typing import Optional


class AccumulatorError(Exception):
    """Base exception for all accumulator errors."""
    pass


class InvalidPrincipal(AccumulatorError):
    """Caller identity is null/zero."""

    def __init__(self, principal: Optional[str]):
        self.principal = principal
        super().__init__(f"Invalid principal: {principal!r}")


class InvalidProof(AccumulatorError):
    """The proof verifier rejected an encrypted delta."""
    pass


class BackendFailure(AccumulatorError):
    """A collaborator (homomorphic engine, access ledger, store) failed."""
    pass


class ConsistencyHazard(AccumulatorError):
    """
    State advanced but a subsequent access grant failed and could not be undone.

    The principal's slot now references `handle`, which the principal
    (or the service) may be unable to decrypt or operate on.
    """

    def __init__(self, principal: str, handle, message: str):
        self.principal = principal
        self.handle = handle
        super().__init__(message)


class AccessDenied(AccumulatorError):
    """Requester holds no access grant on the ciphertext handle."""
    pass


class KeyLoadError(AccumulatorError):
    """Key material could not be loaded."""
    pass
