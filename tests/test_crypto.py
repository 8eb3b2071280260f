"""
Tests for the Paillier engine, input proofs, keyring and decryption gateway.
"""

import json

import pytest

from confidential_accumulator.errors import (
    AccessDenied,
    BackendFailure,
    InvalidProof,
    KeyLoadError,
)
from confidential_accumulator.models import CiphertextHandle, DeltaProof, EncryptedDelta
from confidential_accumulator.services import (
    DecryptionGateway,
    InMemoryAccessControlLedger,
    PaillierEngine,
    PaillierKeyring,
    PaillierProofVerifier,
    encrypt_delta,
)
from confidential_accumulator.services.crypto.proofs import encrypt_plaintext

from conftest import ALICE, BOB, SERVICE_ADDRESS, run


@pytest.fixture
def engine(keyring):
    return PaillierEngine(keyring.public_key, "test-protocol")


@pytest.fixture
def verifier(engine):
    return PaillierProofVerifier(engine)


@pytest.fixture
def gateway(engine, keyring):
    ledger = InMemoryAccessControlLedger(SERVICE_ADDRESS)
    return DecryptionGateway(engine, keyring, ledger), ledger


def admit(verifier, keyring, value, caller=ALICE):
    delta = encrypt_delta(keyring.public_key, value, caller, SERVICE_ADDRESS)
    return verifier.verify(delta, caller, SERVICE_ADDRESS)


def reveal(engine, keyring, handle):
    return keyring.private_key.decrypt(engine.encrypted_number(handle)) % 2 ** 32


class TestPaillierEngine:
    """Homomorphic arithmetic on handles."""

    def test_zero_is_canonical(self, engine):
        assert engine.zero() == engine.zero()
        assert engine.knows(engine.zero())

    def test_zero_decrypts_to_zero(self, engine, keyring):
        assert reveal(engine, keyring, engine.zero()) == 0

    def test_add_and_sub(self, engine, verifier, keyring):
        a = admit(verifier, keyring, 30)
        b = admit(verifier, keyring, 12)
        assert reveal(engine, keyring, engine.add(a, b)) == 42
        assert reveal(engine, keyring, engine.sub(a, b)) == 18

    def test_sub_below_zero_wraps(self, engine, verifier, keyring):
        b = admit(verifier, keyring, 5)
        assert reveal(engine, keyring, engine.sub(engine.zero(), b)) == 2 ** 32 - 5

    def test_operations_mint_new_handles(self, engine, verifier, keyring):
        a = admit(verifier, keyring, 1)
        result = engine.add(a, engine.zero())
        assert result != a
        assert reveal(engine, keyring, a) == 1

    def test_unknown_handle_is_backend_failure(self, engine):
        stranger = CiphertextHandle(protocol_id="test-protocol")
        with pytest.raises(BackendFailure):
            engine.add(engine.zero(), stranger)

    def test_foreign_protocol_handle_is_backend_failure(self, engine):
        foreign = CiphertextHandle(
            handle_id=engine.zero().handle_id,
            protocol_id="other-protocol",
        )
        with pytest.raises(BackendFailure):
            engine.sub(foreign, engine.zero())

    def test_discard_forgets_handle(self, engine, verifier, keyring):
        handle = admit(verifier, keyring, 3)
        engine.discard(handle)
        assert not engine.knows(handle)
        engine.discard(handle)

    def test_zero_is_never_discarded(self, engine):
        engine.discard(engine.zero())
        assert engine.knows(engine.zero())


class TestDeltaProofs:
    """Input proofs are bound to caller and context."""

    def test_valid_proof_admits_ciphertext(self, engine, verifier, keyring):
        handle = admit(verifier, keyring, 77)
        assert engine.knows(handle)
        assert reveal(engine, keyring, handle) == 77

    def test_wrong_caller_rejected(self, verifier, keyring):
        delta = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        with pytest.raises(InvalidProof):
            verifier.verify(delta, BOB, SERVICE_ADDRESS)

    def test_wrong_context_rejected(self, verifier, keyring):
        delta = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        with pytest.raises(InvalidProof):
            verifier.verify(delta, ALICE, "0xanotherdeployment")

    def test_tampered_response_rejected(self, verifier, keyring):
        delta = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        z = int(delta.proof.response_message)
        tampered = EncryptedDelta(
            ciphertext=delta.ciphertext,
            proof=DeltaProof(
                commitment=delta.proof.commitment,
                response_message=str((z + 1) % keyring.public_key.n),
                response_randomness=delta.proof.response_randomness,
            ),
        )
        with pytest.raises(InvalidProof):
            verifier.verify(tampered, ALICE, SERVICE_ADDRESS)

    def test_out_of_range_ciphertext_rejected(self, verifier, keyring):
        delta = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        oversized = EncryptedDelta(
            ciphertext=str(keyring.public_key.nsquare + 1),
            proof=delta.proof,
        )
        with pytest.raises(InvalidProof):
            verifier.verify(oversized, ALICE, SERVICE_ADDRESS)

    def test_field_longer_than_n_squared_rejected(self, verifier, keyring):
        delta = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        padded = EncryptedDelta(
            ciphertext="0" * 5000 + delta.ciphertext,
            proof=delta.proof,
        )
        with pytest.raises(InvalidProof):
            verifier.verify(padded, ALICE, SERVICE_ADDRESS)

    def test_mid_range_plaintext_verifies(self, engine, verifier, keyring):
        """Proofs bind knowledge, not range: any plaintext in Z_n is admitted."""
        n = keyring.public_key.n
        delta = encrypt_plaintext(keyring.public_key, n // 2, ALICE, SERVICE_ADDRESS)
        assert engine.knows(verifier.verify(delta, ALICE, SERVICE_ADDRESS))

    def test_rejected_delta_is_not_registered(self, engine, verifier, keyring):
        delta = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        registered = len(engine)
        with pytest.raises(InvalidProof):
            verifier.verify(delta, BOB, SERVICE_ADDRESS)
        assert len(engine) == registered

    @pytest.mark.parametrize("value", [-1, 2 ** 32])
    def test_encrypt_delta_rejects_non_uint32(self, keyring, value):
        with pytest.raises(ValueError):
            encrypt_delta(keyring.public_key, value, ALICE, SERVICE_ADDRESS)

    def test_encrypt_delta_rejects_bool(self, keyring):
        with pytest.raises(TypeError):
            encrypt_delta(keyring.public_key, True, ALICE, SERVICE_ADDRESS)

    def test_encryption_is_randomized(self, keyring):
        a = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        b = encrypt_delta(keyring.public_key, 5, ALICE, SERVICE_ADDRESS)
        assert a.ciphertext != b.ciphertext


class TestDecryptionGateway:
    """Decryption requires a grant on the exact handle."""

    def test_granted_requester_decrypts(self, engine, verifier, keyring, gateway):
        gw, ledger = gateway
        handle = admit(verifier, keyring, 9)
        run(ledger.grant_to(handle, ALICE))
        assert run(gw.decrypt(handle, ALICE)) == 9

    def test_ungranted_requester_denied(self, verifier, keyring, gateway):
        gw, ledger = gateway
        handle = admit(verifier, keyring, 9)
        run(ledger.grant_to(handle, ALICE))
        with pytest.raises(AccessDenied):
            run(gw.decrypt(handle, BOB))

    def test_mid_range_plaintext_decrypts_modulo_2_32(self, verifier, keyring, gateway):
        gw, ledger = gateway
        n = keyring.public_key.n
        for m in (n // 3 + 1, n // 2, 2 * n // 3 - 1):
            delta = encrypt_plaintext(keyring.public_key, m, ALICE, SERVICE_ADDRESS)
            handle = verifier.verify(delta, ALICE, SERVICE_ADDRESS)
            run(ledger.grant_to(handle, ALICE))
            expected = m if m <= n // 2 else m - n
            assert run(gw.decrypt(handle, ALICE)) == expected % 2 ** 32

    def test_negative_difference_decrypts_wrapped(self, engine, verifier, keyring, gateway):
        gw, ledger = gateway
        handle = engine.sub(engine.zero(), admit(verifier, keyring, 5))
        run(ledger.grant_to(handle, ALICE))
        assert run(gw.decrypt(handle, ALICE)) == 2 ** 32 - 5

    def test_public_only_keyring_cannot_decrypt(self, engine, keyring):
        public_only = PaillierKeyring(keyring.public_key)
        with pytest.raises(KeyLoadError):
            DecryptionGateway(engine, public_only, InMemoryAccessControlLedger(SERVICE_ADDRESS))


class TestPaillierKeyring:
    """Key file round trip and failure modes."""

    def test_save_and_load(self, keyring, tmp_path):
        path = tmp_path / "keys.json"
        keyring.save(str(path))
        loaded = PaillierKeyring.load(str(path))
        assert loaded.public_key == keyring.public_key
        assert loaded.can_decrypt

    def test_load_public_only(self, keyring, tmp_path):
        path = tmp_path / "public.json"
        keyring.save(str(path), include_private=False)
        loaded = PaillierKeyring.load(str(path))
        assert not loaded.can_decrypt

    def test_inconsistent_factors_rejected(self, keyring, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "n": str(keyring.public_key.n),
            "p": "3",
            "q": "5",
        }))
        with pytest.raises(KeyLoadError):
            PaillierKeyring.load(str(path))

    def test_invalid_json_rejected(self, tmp_path):
        path = tmp_path / "garbage.json"
        path.write_text("not json")
        with pytest.raises(KeyLoadError):
            PaillierKeyring.load(str(path))

    def test_missing_file_rejected_after_retries(self, tmp_path):
        with pytest.raises(KeyLoadError):
            PaillierKeyring.load(str(tmp_path / "missing.json"))
