"""
Proofs of Well-Formed Encrypted Inputs

A non-interactive (Fiat-Shamir) sigma protocol proving knowledge of the
plaintext m and randomness r behind a Paillier ciphertext c = g^m * r^n
(g = n + 1), bound to the submitting principal and the accumulator
instance.

    prover:   x <- Z_n, s <- Z_n*
              a = g^x * s^n                  (mod n^2)
              e = H(n, c, a, caller, context)
              z = x + e*m                    (mod n)
              w = s * r^e                    (mod n)
    verifier: g^z * w^n == a * c^e           (mod n^2)

Reducing z mod n is sound because g^n = 1 (mod n^2) for g = n + 1.

Binding caller and context into e means a proof lifted from another
principal's submission, or from another deployment, fails verification.
"""

import hashlib
import math
import secrets

import structlog
from phe import paillier

from confidential_accumulator.errors import InvalidProof
from confidential_accumulator.models.ciphertext import (
    UINT32_MODULUS,
    CiphertextHandle,
    DeltaProof,
    EncryptedDelta,
    Principal,
)
from confidential_accumulator.services.crypto.interface import ProofVerifier
from confidential_accumulator.services.crypto.paillier_engine import PaillierEngine


logger = structlog.get_logger(__name__)

CHALLENGE_DOMAIN = b"confidential-accumulator/delta-pok/v1"


def _random_coprime(n: int) -> int:
    while True:
        r = secrets.randbelow(n)
        if r > 1 and math.gcd(r, n) == 1:
            return r


def _paillier_encrypt(n: int, nsquare: int, m: int, r: int) -> int:
    # (1 + n)^m = 1 + m*n (mod n^2)
    return ((1 + m * n) % nsquare) * pow(r, n, nsquare) % nsquare


def challenge(
    n: int,
    ciphertext: int,
    commitment: int,
    caller: Principal,
    context: str,
) -> int:
    """Fiat-Shamir challenge over the statement and its binding."""
    digest = hashlib.sha256()
    digest.update(CHALLENGE_DOMAIN)
    for part in (str(n), str(ciphertext), str(commitment), caller, context):
        encoded = part.encode("utf-8")
        digest.update(len(encoded).to_bytes(4, "big"))
        digest.update(encoded)
    return int.from_bytes(digest.digest(), "big")


def encrypt_delta(
    public_key: paillier.PaillierPublicKey,
    value: int,
    caller: Principal,
    context: str,
) -> EncryptedDelta:
    """
    Client side: encrypt a uint32 delta and prove it was honestly built.

    Args:
        public_key: The deployment's Paillier public key
        value: Cleartext delta in [0, 2^32)
        caller: Principal that will submit the delta
        context: The accumulator's service address

    Returns:
        EncryptedDelta ready for increment/decrement
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("delta must be an int")
    if not 0 <= value < UINT32_MODULUS:
        raise ValueError(f"delta must be a uint32, got {value}")
    return encrypt_plaintext(public_key, value, caller, context)


def encrypt_plaintext(
    public_key: paillier.PaillierPublicKey,
    value: int,
    caller: Principal,
    context: str,
) -> EncryptedDelta:
    """Encrypt any plaintext in Z_n with a bound proof. No uint32 check."""
    n, nsquare = public_key.n, public_key.nsquare
    r = _random_coprime(n)
    ciphertext = _paillier_encrypt(n, nsquare, value, r)

    x = secrets.randbelow(n)
    s = _random_coprime(n)
    commitment = _paillier_encrypt(n, nsquare, x, s)

    e = challenge(n, ciphertext, commitment, caller, context)
    z = (x + e * value) % n
    w = (s * pow(r, e, n)) % n

    return EncryptedDelta(
        ciphertext=str(ciphertext),
        proof=DeltaProof(
            commitment=str(commitment),
            response_message=str(z),
            response_randomness=str(w),
        ),
    )


class PaillierProofVerifier(ProofVerifier):
    """Verifies delta proofs and admits the ciphertext into the engine."""

    def __init__(self, engine: PaillierEngine):
        self._engine = engine

    def verify(
        self,
        delta: EncryptedDelta,
        bound_caller: Principal,
        bound_context: str,
    ) -> CiphertextHandle:
        public_key = self._engine.public_key
        n, nsquare = public_key.n, public_key.nsquare

        max_digits = len(str(nsquare))
        ciphertext, a, z, w = (
            self._parse(field, value, max_digits)
            for field, value in (
                ("ciphertext", delta.ciphertext),
                ("commitment", delta.proof.commitment),
                ("response_message", delta.proof.response_message),
                ("response_randomness", delta.proof.response_randomness),
            )
        )

        if not self._is_unit(ciphertext, nsquare, n):
            raise InvalidProof("Ciphertext is not a valid Paillier ciphertext")
        if not self._is_unit(a, nsquare, n):
            raise InvalidProof("Proof commitment is out of range")
        if not 0 <= z < n:
            raise InvalidProof("Proof response is out of range")
        if not self._is_unit(w, n, n):
            raise InvalidProof("Proof randomness is out of range")

        e = challenge(n, ciphertext, a, bound_caller, bound_context)
        lhs = _paillier_encrypt(n, nsquare, z, w)
        rhs = (a * pow(ciphertext, e, nsquare)) % nsquare
        if lhs != rhs:
            logger.debug("delta_proof_rejected", caller=bound_caller)
            raise InvalidProof("Proof does not verify for this caller and context")

        return self._engine.register_ciphertext(ciphertext)

    @staticmethod
    def _parse(field: str, value: str, max_digits: int) -> int:
        # Longer than n^2 is out of range anyway, and int() has a digit limit
        if len(value) > max_digits:
            raise InvalidProof(f"{field} is longer than any value mod n^2")
        try:
            return int(value)
        except ValueError as e:
            raise InvalidProof(f"{field} is not a decimal integer") from e

    @staticmethod
    def _is_unit(value: int, bound: int, n: int) -> bool:
        return 0 < value < bound and math.gcd(value, n) == 1
